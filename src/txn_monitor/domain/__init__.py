"""Domain Layer Package"""
