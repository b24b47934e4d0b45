"""
Module 'checkout' (feature-first): panier multi-boutiques, contrôle de stock et pipeline de commande.
"""
