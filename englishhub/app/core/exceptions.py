"""业务异常

服务层统一抛出 ValueError 的子类，路由层按类型映射为 HTTP 状态码。
未细分的 ValueError 视为参数错误（400）。
"""

from fastapi import status


class NotFoundError(ValueError):
    """资源不存在"""

    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(ValueError):
    """无权操作该资源"""

    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(ValueError):
    """当前状态不允许该操作"""

    status_code = status.HTTP_409_CONFLICT


def status_code_for(exc: ValueError) -> int:
    """根据异常类型返回 HTTP 状态码"""
    return getattr(exc, "status_code", status.HTTP_400_BAD_REQUEST)
