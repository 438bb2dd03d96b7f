"""
业务模块目录
每个模块在 {module_id}_manifest.py 中通过 setup(registry, ctx) 注册
"""
