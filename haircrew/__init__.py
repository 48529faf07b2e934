"""HairCrew storefront and admin API"""
