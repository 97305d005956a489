from said_sdk.metadata.cards import CardFetcher, fallback_card_uri, normalize_metadata_uri

__all__ = ["CardFetcher", "fallback_card_uri", "normalize_metadata_uri"]
