"""fieldops Core -- 领域模型、生命周期规则、批量导入校验与 SQLite 存储"""
