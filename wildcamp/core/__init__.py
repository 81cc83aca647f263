"""wildcamp Core - 순수 Python, DB 무관"""
