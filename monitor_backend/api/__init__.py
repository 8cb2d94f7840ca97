"""
HTTP API 层
"""
