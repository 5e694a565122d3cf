"""NEON NOIR 测试套件"""
