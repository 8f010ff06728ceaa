"""
Key store service for signing and validation keys held in Azure Key Vault.
"""
