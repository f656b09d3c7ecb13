"""
筛选器定义 - 宿主渲染成下拉选择框 (Picker)

每个筛选器是固定的选项枚举, 无效或缺省的值回落到默认值。
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class FilterOption:
    label: str
    value: str


@dataclass(frozen=True)
class PickerFilter:
    """单选筛选器"""
    label: str
    value: str                          # 默认值
    options: Tuple[FilterOption, ...]
    type: str = "Picker"

    @property
    def values(self) -> Tuple[str, ...]:
        return tuple(o.value for o in self.options)

    def resolve(self, value: Optional[str]) -> str:
        """返回合法的选项值, 否则返回默认值"""
        if value is not None and value in self.values:
            return value
        return self.value

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "value": self.value,
            "options": [{"label": o.label, "value": o.value} for o in self.options],
            "type": self.type,
        }


def resolve_filters(
    schema: Mapping[str, PickerFilter],
    selected: Optional[Mapping[str, Optional[str]]] = None,
) -> Dict[str, str]:
    """
    按 schema 解析宿主传入的筛选值

    selected 中的值既可以是字符串, 也可以是宿主格式的 {"value": ...}。
    schema 之外的键被忽略。
    """
    selected = selected or {}
    resolved = {}
    for key, picker in schema.items():
        raw = selected.get(key)
        if isinstance(raw, Mapping):
            raw = raw.get("value")
        resolved[key] = picker.resolve(raw)
    return resolved
