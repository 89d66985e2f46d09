"""核心服务模块"""
