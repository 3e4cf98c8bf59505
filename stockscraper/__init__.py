"""consorsbank.de 股票列表爬虫。"""

__version__ = "0.1.0"
