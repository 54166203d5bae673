from src.vault.client import VaultClient

__all__ = ["VaultClient"]
