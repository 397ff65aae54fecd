"""REST Clients Package"""
