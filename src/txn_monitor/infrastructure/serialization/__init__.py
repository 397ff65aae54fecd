"""Serialization Package"""
