"""Redis Key 命名规范。

Redis 仅用于 Widget 配置持久化（WIDGET_STORE_BACKEND=redis）：
- widget:{widget_id}: 单个 WidgetConfig 的 JSON
- widgets:index: 有序的 widget id 列表（JSON 数组）

所有 key 都带有 WIDGET_STORE_PREFIX 前缀，便于多实例共用一个 Redis。
"""


class RedisKeys:
    """Redis Key 命名空间管理。"""

    # widget:{widget_id}
    WIDGET_PREFIX = "widget"

    # widgets:index
    WIDGET_INDEX = "widgets:index"

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def widget(self, widget_id: str) -> str:
        """生成单个 widget 配置 key。"""
        return f"{self.prefix}{self.WIDGET_PREFIX}:{widget_id}"

    def widget_index(self) -> str:
        """生成 widget id 索引 key。"""
        return f"{self.prefix}{self.WIDGET_INDEX}"
