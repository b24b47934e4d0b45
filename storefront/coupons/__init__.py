"""
Module 'coupons' (feature-first): résolution des codes promo par boutique et calcul de remise.
"""
