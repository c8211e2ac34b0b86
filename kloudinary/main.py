"""
kloudinary 命令行入口

批量上传本地文件、删除资源、生成转换地址
"""

import argparse
import asyncio
import sys
from typing import Dict, List, Optional

from .core.upload_manager import AssetUploadManager
from .models.upload_result import BatchSummary, UploadOutcome
from .utils.config import Config, setup_config
from .utils.exceptions import KloudinaryError
from .utils.file_utils import collect_file_paths
from .utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def parse_metadata(pairs: Optional[List[str]]) -> Dict[str, str]:
    """
    解析 key=value 形式的元数据

    Raises:
        ValueError: 格式错误
    """
    metadata: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"元数据格式错误，应为 key=value: {pair}")
        metadata[key.strip()] = value.strip()
    return metadata


def print_outcomes(outcomes: List[UploadOutcome], summary: BatchSummary) -> None:
    """打印每个上传的耗时、地址或错误，以及整体统计"""
    for outcome in outcomes:
        if outcome.succeeded:
            print(f"[OK]   ({outcome.latency:.2f}s) {outcome.label} -> {outcome.result.secure_url}")
        else:
            print(f"[FAIL] ({outcome.latency:.2f}s) {outcome.label}: {outcome.error_text}")

    print(f"\n成功 {summary.succeeded}/{summary.total}，"
          f"平均耗时 {summary.average_time:.2f}s，总耗时 {summary.duration:.2f}s")


def create_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog="kloudinary",
        description="Cloudinary资源并发上传工具"
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", "-c",
        help="配置文件路径（.json / .ini）",
        default=None
    )
    common.add_argument(
        "--verbose", "-v",
        help="详细输出",
        action="store_true"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    upload = subparsers.add_parser("upload", parents=[common], help="上传文件或目录")
    upload.add_argument("paths", nargs="+", help="文件或目录路径")
    upload.add_argument("--recursive", "-r", action="store_true", help="递归上传子目录中的文件")
    upload.add_argument("--concurrency", type=int, help="最大并发上传数")
    upload.add_argument("--timeout", type=float, help="单个上传超时（秒）")
    upload.add_argument("--batch-timeout", type=float, help="整批超时（秒）")
    upload.add_argument("--max-size", type=int, help="最大资源大小（字节）")
    upload.add_argument("--meta", action="append", metavar="KEY=VALUE", help="附加元数据，可重复")

    destroy = subparsers.add_parser("destroy", parents=[common], help="删除资源")
    destroy.add_argument("public_id", help="资源公共ID")

    url = subparsers.add_parser("url", parents=[common], help="生成图片转换地址")
    url.add_argument("public_id", help="资源公共ID")
    url.add_argument("transformation", help="转换描述，例如 c_fill,w_300,h_200")

    return parser


def apply_upload_overrides(config: Config, args: argparse.Namespace) -> None:
    """把命令行参数覆盖到上传配置"""
    if args.concurrency is not None:
        config.upload.max_concurrent_uploads = args.concurrency
    if args.timeout is not None:
        config.upload.max_upload_timeout = args.timeout
    if args.max_size is not None:
        config.upload.max_asset_size = args.max_size


async def run_upload(manager: AssetUploadManager, args: argparse.Namespace) -> int:
    """执行上传命令"""
    for key, value in parse_metadata(args.meta).items():
        manager.metadata.add(key, value)

    files = collect_file_paths(args.paths, recursive=args.recursive)
    if not files:
        print("没有找到要上传的文件")
        return 1

    outcomes = await manager.upload_multiple_files(*files, timeout=args.batch_timeout)
    summary = manager.last_summary or BatchSummary.from_outcomes(outcomes)
    print_outcomes(outcomes, summary)
    return 0 if summary.failed == 0 else 1


async def run_command(args: argparse.Namespace, config: Config) -> int:
    """按子命令执行"""
    async with AssetUploadManager.from_config(config) as manager:
        if args.command == "upload":
            return await run_upload(manager, args)

        if args.command == "destroy":
            response = await manager.destroy_asset(args.public_id)
            print(f"{args.public_id}: {response.get('result')}")
            return 0 if response.get("result") == "ok" else 1

        print(manager.transform_image(args.public_id, args.transformation))
        return 0


async def main(argv: Optional[List[str]] = None) -> int:
    """主函数"""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = setup_config(args.config)

        if args.verbose:
            config.logging.level = "DEBUG"

        setup_logging(
            level=config.logging.level,
            log_file=config.logging.log_file,
            log_dir=config.logging.log_dir,
            console_output=config.logging.console_output,
            json_format=config.logging.json_format
        )

        if args.command == "upload":
            apply_upload_overrides(config, args)

        config.validate()
        return await run_command(args, config)

    except (KloudinaryError, ValueError) as e:
        logger.error(f"错误: {e}")
        print(f"错误: {e}")
        return 1


def run() -> None:
    """命令行入口"""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\n用户中断，正在停止...")
        sys.exit(130)


if __name__ == "__main__":
    run()
