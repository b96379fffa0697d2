"""
引擎配置

从 .env 文件和环境变量读取聚类系数引擎的运行参数。
所有算法函数都接受显式参数，显式参数优先于这里的配置。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# 加载.env文件
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
else:
    load_dotenv()

# 环境变量名 -> 默认值
DEFAULT_SETTINGS = {
    "CLUSTERING_MAX_WORKERS": "4",
    "CLUSTERING_SEED": "",
    "CLUSTERING_MAX_REDRAWS": "10000",
    "CLUSTERING_DEFAULT_TRIALS": "10000",
    "CLUSTERING_LOG_LEVEL": "INFO",
    "CLUSTERING_LOG_FILE": "",
}

_config: Optional["EngineConfig"] = None


@dataclass(frozen=True)
class EngineConfig:
    """聚类系数引擎配置"""

    max_workers: int = 4
    """并行遍历节点时的线程数"""

    seed: Optional[int] = None
    """近似算法默认随机数种子，None 表示不固定"""

    max_redraws: int = 10000
    """抽取两个不同邻居时允许的最大重抽次数"""

    default_trials: int = 10000
    """近似算法默认试验次数"""

    log_level: str = "INFO"
    log_file: Optional[str] = None


def _read_int(name: str, minimum: int) -> int:
    raw = os.getenv(name, DEFAULT_SETTINGS[name]).strip()
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"环境变量 {name} 必须是整数，当前值: {raw!r}") from None
    if value < minimum:
        raise ValueError(f"环境变量 {name} 必须 >= {minimum}，当前值: {value}")
    return value


def load_config() -> EngineConfig:
    """
    从环境变量构建配置

    Returns:
        EngineConfig 实例

    Raises:
        ValueError: 如果某个环境变量的值无效
    """
    seed_raw = os.getenv("CLUSTERING_SEED", DEFAULT_SETTINGS["CLUSTERING_SEED"]).strip()
    if seed_raw:
        try:
            seed: Optional[int] = int(seed_raw)
        except ValueError:
            raise ValueError(f"环境变量 CLUSTERING_SEED 必须是整数，当前值: {seed_raw!r}") from None
    else:
        seed = None

    log_file = os.getenv("CLUSTERING_LOG_FILE", DEFAULT_SETTINGS["CLUSTERING_LOG_FILE"]).strip()

    return EngineConfig(
        max_workers=_read_int("CLUSTERING_MAX_WORKERS", 1),
        seed=seed,
        max_redraws=_read_int("CLUSTERING_MAX_REDRAWS", 1),
        default_trials=_read_int("CLUSTERING_DEFAULT_TRIALS", 1),
        log_level=os.getenv("CLUSTERING_LOG_LEVEL", DEFAULT_SETTINGS["CLUSTERING_LOG_LEVEL"]).strip().upper(),
        log_file=log_file or None,
    )


def get_config() -> EngineConfig:
    """获取（缓存的）引擎配置"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """清除缓存的配置，下次 get_config() 时重新读取环境变量"""
    global _config
    _config = None
