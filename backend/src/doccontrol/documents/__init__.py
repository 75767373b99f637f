"""Document record access and status mirroring"""
