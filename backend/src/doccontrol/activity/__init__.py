"""Append-only document activity log"""
