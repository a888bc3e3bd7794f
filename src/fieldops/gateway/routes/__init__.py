"""HTTP 路由"""
