"""結果の出力先。"""
