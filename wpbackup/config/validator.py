"""配置覆盖文件校验

用 JSON Schema 检查 .wpbackup.json 中的键名和取值类型
"""

from typing import Any, Optional

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError
from loguru import logger

from .schema import SETTINGS_SCHEMA


class ConfigValidationError(Exception):
    """配置覆盖文件内容不合法"""

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])

    def __str__(self) -> str:
        if not self.errors:
            return self.args[0]
        return f"{self.args[0]}: {'; '.join(self.errors)}"


def describe_error(error: ValidationError) -> str:
    """把校验错误转成 `键[下标]: 原因` 的形式"""
    location = ""
    for part in error.absolute_path:
        if isinstance(part, int):
            location += f"[{part}]"
        else:
            location += f".{part}" if location else str(part)
    return f"{location}: {error.message}" if location else error.message


class ConfigValidator:
    """配置覆盖文件校验器

    默认使用 SETTINGS_SCHEMA，也可以传入其它 Schema
    """

    def __init__(self, schema: dict = SETTINGS_SCHEMA):
        Draft7Validator.check_schema(schema)
        self.schema = schema
        self._validator = Draft7Validator(schema)

    def errors(self, data: Any) -> list[str]:
        """返回全部校验错误，按出错位置排序"""
        found = sorted(
            self._validator.iter_errors(data),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        return [describe_error(e) for e in found]

    def validate(self, data: Any, source: str = "配置") -> Any:
        """校验数据

        Args:
            data: 从覆盖文件读出的内容
            source: 错误信息中使用的来源名称

        Returns:
            原样返回 data

        Raises:
            ConfigValidationError: 存在任何校验错误
        """
        problems = self.errors(data)
        if problems:
            raise ConfigValidationError(f"{source} 校验失败", errors=problems)
        logger.debug(f"{source} 校验通过")
        return data


__all__ = ["ConfigValidationError", "ConfigValidator", "describe_error"]
