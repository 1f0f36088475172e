"""QR code and short URL service."""
