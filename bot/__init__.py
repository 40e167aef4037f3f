"""
Telegram notification and command surface for the sniper worker
"""
