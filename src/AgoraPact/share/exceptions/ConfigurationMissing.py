class ConfigurationMissing(Exception):
    """
    请求的提案类型在配置中不存在时抛出。

    频道未匹配任何类型时不会抛出此异常，而是视为普通聊天。
    """

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"未配置的提案类型: '{type_name}'")
