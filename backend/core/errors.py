"""
标准错误码体系
提供统一的错误码定义和异常处理
"""

from typing import Optional, Any, Dict
from enum import IntEnum
from fastapi import status
from fastapi.responses import JSONResponse


class ErrorCode(IntEnum):
    """
    标准错误码

    错误码规范：
    - 0: 成功
    - 1xxx: 系统级错误
    - 3xxx: 业务通用错误
    - 4xxx: 模块级错误（4200-4299 为模块注册与数据源）
    """

    # ==================== 成功 ====================
    SUCCESS = 0

    # ==================== 系统级错误 (1xxx) ====================
    INTERNAL_ERROR = 1000           # 服务器内部错误
    DATABASE_ERROR = 1001           # 数据库错误
    CONFIG_ERROR = 1003             # 配置错误

    # ==================== 业务通用错误 (3xxx) ====================
    VALIDATION_ERROR = 3001         # 参数验证失败
    RESOURCE_NOT_FOUND = 3002       # 资源不存在
    OPERATION_FAILED = 3005         # 操作失败
    DATA_INTEGRITY_ERROR = 3007     # 数据完整性错误

    # ==================== 模块注册与数据源 (4200-4299) ====================
    CHANNEL_NOT_FOUND = 4201            # 没有模块能提供该频道
    MODULE_DUPLICATE = 4202             # 模块名重复注册
    CAPABILITY_NOT_REGISTERED = 4203    # 没有模块提供该能力
    UPSTREAM_FAILURE = 4204             # 领域服务调用失败
    REGISTRY_SEALED = 4205              # 注册表已封存
    REGISTRY_NOT_SEALED = 4206          # 注册表尚未封存
    CAPABILITY_CONFLICT = 4207          # 能力归属冲突
    MODULE_LOAD_FAILED = 4208           # 模块清单加载失败
    CAPABILITY_UNDECLARED = 4209        # 能力未声明适用范围


# 错误码对应的默认消息
ERROR_MESSAGES: Dict[int, str] = {
    ErrorCode.SUCCESS: "操作成功",

    # 系统级
    ErrorCode.INTERNAL_ERROR: "服务器内部错误，请稍后重试",
    ErrorCode.DATABASE_ERROR: "数据库操作失败",
    ErrorCode.CONFIG_ERROR: "系统配置错误",

    # 业务通用
    ErrorCode.VALIDATION_ERROR: "参数验证失败",
    ErrorCode.RESOURCE_NOT_FOUND: "请求的资源不存在",
    ErrorCode.OPERATION_FAILED: "操作失败",
    ErrorCode.DATA_INTEGRITY_ERROR: "数据完整性错误",

    # 模块注册与数据源
    ErrorCode.CHANNEL_NOT_FOUND: "频道不存在",
    ErrorCode.MODULE_DUPLICATE: "模块已注册",
    ErrorCode.CAPABILITY_NOT_REGISTERED: "没有模块提供该数据源能力",
    ErrorCode.UPSTREAM_FAILURE: "数据源查询失败",
    ErrorCode.REGISTRY_SEALED: "模块注册表已封存，无法继续注册",
    ErrorCode.REGISTRY_NOT_SEALED: "模块注册尚未完成",
    ErrorCode.CAPABILITY_CONFLICT: "数据源能力归属冲突",
    ErrorCode.MODULE_LOAD_FAILED: "模块加载失败",
    ErrorCode.CAPABILITY_UNDECLARED: "数据源能力未声明适用的频道类型",
}

# 错误码对应的 HTTP 状态码
ERROR_HTTP_STATUS: Dict[int, int] = {
    ErrorCode.SUCCESS: status.HTTP_200_OK,

    # 系统级 -> 500
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.DATABASE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CONFIG_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,

    # 业务通用 -> 400/404
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.OPERATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.DATA_INTEGRITY_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,

    # 模块注册与数据源
    ErrorCode.CHANNEL_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.MODULE_DUPLICATE: status.HTTP_409_CONFLICT,
    ErrorCode.CAPABILITY_NOT_REGISTERED: status.HTTP_501_NOT_IMPLEMENTED,
    ErrorCode.UPSTREAM_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.REGISTRY_SEALED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.REGISTRY_NOT_SEALED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CAPABILITY_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.MODULE_LOAD_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CAPABILITY_UNDECLARED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppException(Exception):
    """
    应用异常基类

    用于抛出业务异常，包含错误码和详细信息

    Usage:
        raise AppException(ErrorCode.RESOURCE_NOT_FOUND, "用户不存在")
        raise AppException(ErrorCode.VALIDATION_ERROR, data={"field": "cmd", "error": "不支持"})
    """

    def __init__(
        self,
        code: int = ErrorCode.INTERNAL_ERROR,
        message: Optional[str] = None,
        data: Any = None
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "未知错误")
        self.data = data
        self.http_status = ERROR_HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """转换为 JSONResponse"""
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict()
        )

    def to_dict(self) -> dict:
        """转换为字典"""
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data
        }


class ValidationException(AppException):
    """参数验证异常"""

    def __init__(self, message: str = "参数验证失败", errors: Optional[list] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            data={"errors": errors} if errors else None
        )


class NotFoundException(AppException):
    """资源不存在异常"""

    def __init__(self, resource: str = "资源", resource_id: Any = None, code: int = ErrorCode.RESOURCE_NOT_FOUND):
        message = f"{resource}不存在"
        if resource_id:
            message = f"{resource} (ID: {resource_id}) 不存在"
        super().__init__(code=code, message=message)


class BusinessException(AppException):
    """业务异常"""

    def __init__(
        self,
        code: int = ErrorCode.OPERATION_FAILED,
        message: str = "操作失败",
        data: Any = None
    ):
        super().__init__(code=code, message=message, data=data)


# ==================== 数据源异常 ====================

class ChannelNotFoundException(NotFoundException):
    """所有模块都不处理该频道"""

    def __init__(self, channel_id: str, channel_type: int):
        super().__init__(
            resource=f"频道[{channel_type}]",
            resource_id=channel_id,
            code=ErrorCode.CHANNEL_NOT_FOUND
        )
        self.channel_id = channel_id
        self.channel_type = channel_type


class DataIntegrityException(AppException):
    """归属本模块的数据缺失关联实体（如个人频道没有对应用户）"""

    def __init__(self, message: str, data: Any = None):
        super().__init__(code=ErrorCode.DATA_INTEGRITY_ERROR, message=message, data=data)


class DuplicateRegistrationException(AppException):
    """模块名重复注册"""

    def __init__(self, module_name: str):
        super().__init__(
            code=ErrorCode.MODULE_DUPLICATE,
            message=f"模块已注册: {module_name}",
            data={"module": module_name}
        )
        self.module_name = module_name


class CapabilityNotRegisteredException(AppException):
    """没有模块提供所请求的能力"""

    def __init__(self, capability: str, module_name: Optional[str] = None):
        message = f"没有模块提供数据源能力: {capability}"
        if module_name:
            message = f"模块 {module_name} 未提供数据源能力: {capability}"
        super().__init__(
            code=ErrorCode.CAPABILITY_NOT_REGISTERED,
            message=message,
            data={"capability": capability, "module": module_name}
        )
        self.capability = capability


class CapabilityConflictException(AppException):
    """同一能力被多个模块声明"""

    def __init__(self, capability: str, owner: str, challenger: str):
        super().__init__(
            code=ErrorCode.CAPABILITY_CONFLICT,
            message=f"数据源能力 {capability} 已由模块 {owner} 提供，模块 {challenger} 不能重复声明",
            data={"capability": capability, "owner": owner, "module": challenger}
        )


class CapabilityUndeclaredException(AppException):
    """提供 has_data 却未声明 whitelist_channel_types"""

    def __init__(self, module_name: str):
        super().__init__(
            code=ErrorCode.CAPABILITY_UNDECLARED,
            message=f"模块 {module_name} 提供 has_data 但未声明 whitelist_channel_types",
            data={"module": module_name}
        )


class ModuleLoadException(AppException):
    """模块清单无法导入或缺少 setup，启动中止"""

    def __init__(self, module_id: str, reason: str):
        super().__init__(
            code=ErrorCode.MODULE_LOAD_FAILED,
            message=f"模块加载失败: {module_id} ({reason})",
            data={"module": module_id, "reason": reason}
        )
        self.module_id = module_id


class RegistrySealedException(AppException):
    """注册表封存后仍尝试注册"""

    def __init__(self, module_name: str):
        super().__init__(
            code=ErrorCode.REGISTRY_SEALED,
            data={"module": module_name}
        )


class RegistryNotSealedException(AppException):
    """注册完成前发起查询"""

    def __init__(self):
        super().__init__(code=ErrorCode.REGISTRY_NOT_SEALED)


class UpstreamFailureException(AppException):
    """
    领域服务调用失败

    原始异常通过 raise ... from 保存在 __cause__ 中，同时写入 data 便于消息核心判断重试
    """

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(
            code=ErrorCode.UPSTREAM_FAILURE,
            message=f"数据源查询失败: {operation}",
            data={"operation": operation, "cause": f"{type(cause).__name__}: {cause}"}
        )
        self.operation = operation


# ==================== 异常处理器 ====================

async def app_exception_handler(request, exc: AppException):
    """AppException 异常处理器"""
    return exc.to_response()


def register_exception_handlers(app):
    """
    注册异常处理器

    在 main.py 中调用：
        from core.errors import register_exception_handlers
        register_exception_handlers(app)
    """
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    @app.exception_handler(AppException)
    async def handle_app_exception(request, exc: AppException):
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "code": ErrorCode.VALIDATION_ERROR,
                "message": "参数验证失败",
                "data": {"errors": errors}
            }
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        # 映射 HTTP 状态码到业务错误码
        code_mapping = {
            404: ErrorCode.RESOURCE_NOT_FOUND,
            500: ErrorCode.INTERNAL_ERROR,
        }

        code = code_mapping.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = str(exc.detail) if exc.detail else ERROR_MESSAGES.get(code, "请求失败")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "code": code,
                "message": message,
                "data": None
            }
        )


# ==================== 响应构建器 ====================

def success_response(
    data: Any = None,
    message: str = "操作成功"
) -> dict:
    """构建成功响应"""
    return {
        "code": ErrorCode.SUCCESS,
        "message": message,
        "data": data
    }


def error_response(
    code: int = ErrorCode.INTERNAL_ERROR,
    message: Optional[str] = None,
    data: Any = None
) -> dict:
    """构建错误响应"""
    return {
        "code": code,
        "message": message or ERROR_MESSAGES.get(code, "操作失败"),
        "data": data
    }
