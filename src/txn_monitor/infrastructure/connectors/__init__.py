"""WebSocket Connectors Package"""
