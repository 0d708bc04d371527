"""配置模块

包含应用配置、中间件配置和异常处理配置。
models.database 会导入 config.settings，这里不预先导入 app_config（它依赖路由和模型），
使用方按子模块导入：from config.app_config import create_app
"""
