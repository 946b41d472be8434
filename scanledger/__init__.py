"""スキャン結果台帳（セッション・結果・進捗の永続化と保守）。"""

__version__ = "0.1.0"
