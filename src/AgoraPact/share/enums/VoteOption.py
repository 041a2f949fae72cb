class VoteOption:
    """
    投票与支持所使用的反应表情。
    """

    SUPPORT = "✅"
    YES = "✅"
    NO = "❌"
