"""wpbackup 核心模块"""
