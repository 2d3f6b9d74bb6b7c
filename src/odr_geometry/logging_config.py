"""日志配置

库内各模块只通过 logging.getLogger(__name__) 记录日志，
由调用方在程序入口调用 setup_logging 配置输出。
"""

import logging
import os
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """配置日志输出

    Args:
        level: 日志级别
        log_file: 日志文件路径，为None时只输出到控制台

    Returns:
        logging.Logger: 包的根日志记录器
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    return logging.getLogger('odr_geometry')
