from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_dotenv_if_present(env_path: Optional[str | Path] = None) -> bool:
    """
    尝试从项目根目录加载 .env 文件（如果存在）。

    - 默认查找路径为 src/aisubs/ 之上的仓库根目录下的 .env，找不到时再看当前工作目录；
    - 已存在的环境变量不会被覆盖；
    - 返回是否实际加载了文件。
    """
    if env_path is None:
        root = Path(__file__).resolve().parents[2]
        candidates = [root / ".env", Path.cwd() / ".env"]
    else:
        candidates = [Path(env_path)]

    for env_file in candidates:
        if env_file.is_file():
            load_dotenv(dotenv_path=env_file, override=False)
            return True
    return False
