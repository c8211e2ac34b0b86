"""
kloudinary 测试
"""
