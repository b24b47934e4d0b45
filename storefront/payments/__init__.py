"""
Module 'payments' (feature-first): initiation mobile money (Lenco) et réconciliation webhook.
"""
