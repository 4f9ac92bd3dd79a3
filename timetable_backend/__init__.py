# timetable_backend/__init__.py
"""
手入力の時刻表（最大3路線 x 4経路）をキー・バリューストアに保存し、
有効時間帯・時刻一覧・次発までのカウントダウンを返すバックエンド。
"""

__version__ = "0.1.0"
