"""核心基础设施：配置、数据库会话、令牌与业务异常"""
