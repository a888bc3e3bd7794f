"""fieldops Gateway -- FastAPI HTTP 接入层"""
