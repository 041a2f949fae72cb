class AlreadyExists(Exception):
    """
    条件写入失败：记录已存在，或已不处于可变更的状态。
    由重复创建或重复结算引起，调用方应静默吸收。
    """

    def __init__(self, key: int):
        self.key = key
        super().__init__(f"提案 {key} 已存在或已结算")
