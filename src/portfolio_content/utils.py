"""
Utilities Module
로깅, 디렉토리 준비, JSON 출력 헬퍼
"""

import json
import logging
import os
import sys
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# 모든 모듈 로거의 부모 (portfolio_content.*)
PACKAGE_LOGGER = "portfolio_content"


def setup_logger(name: str, level=logging.INFO) -> logging.Logger:
    """
    로거 설정 및 반환 (콘솔 출력)

    파일 로그는 설정이 로드된 뒤 configure_file_logging()으로 연결합니다.

    Args:
        name: 로거 이름 (__name__)
        level: 로그 레벨

    Returns:
        설정된 Logger 인스턴스
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # 핸들러가 이미 있다면 추가하지 않음 (중복 로그 방지)
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    return logger


def configure_file_logging(log_dir: Optional[Union[str, Path]], log_file: str = "pipeline.log",
                           logger_name: str = PACKAGE_LOGGER) -> Optional[RotatingFileHandler]:
    """
    패키지 로거에 회전 파일 핸들러 연결

    하위 모듈 로거의 기록이 전파되어 한 파일에 모입니다. log_dir이 없으면
    아무것도 하지 않으며, 같은 파일에 대해 두 번 호출해도 핸들러는 하나입니다.

    Returns:
        연결된 핸들러 (log_dir이 없으면 None)
    """
    if not log_dir:
        return None

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    target_file = (log_path / log_file).resolve()

    target = logging.getLogger(logger_name)
    for handler in target.handlers:
        if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == target_file:
            return handler

    # 10MB 단위로 최대 5개 파일 유지
    file_handler = RotatingFileHandler(
        target_file, maxBytes=10*1024*1024, backupCount=5, encoding='utf-8'
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    target.addHandler(file_handler)
    return file_handler


def ensure_directories(*paths: Path) -> None:
    """출력 디렉토리 생성 (반복 호출, 동시 실행에도 안전)"""
    for path in paths:
        Path(path).mkdir(parents=True, exist_ok=True)


def write_json(path: Path, data: Any) -> None:
    """임시 파일에 쓴 뒤 교체하므로 읽는 쪽은 완성된 파일만 봅니다."""
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
