from said_sdk.verification.proofs import VERIFICATION_METHODS, ProofChecker, ProofResult

__all__ = ["VERIFICATION_METHODS", "ProofChecker", "ProofResult"]
