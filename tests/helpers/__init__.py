"""测试辅助工具模块

提供级联软删除测试共用的模型定义。
"""
