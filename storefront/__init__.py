"""
Storefront: checkout multi-boutiques, paiement mobile money (Lenco) et suivi de commandes.
"""
