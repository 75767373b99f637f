"""Sequential document approval workflow"""
