import argparse
import sys
from typing import List, Optional

from config.config import Config
from src_zncc_disparity.disparity_calculator import DisparityCalculator
from src_zncc_disparity.errors import StereoDisparityError
from utils.logger_config import LoggerConfig, get_logger

DEFAULT_CONFIG_FILE = "config/config_disparity.json"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="ZNCC stereo disparity estimation")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE,
                        help="Path to the configuration JSON file")
    parser.add_argument("--left", dest="left_image", help="Left image (overrides left_image)")
    parser.add_argument("--right", dest="right_image", help="Right image (overrides right_image)")
    parser.add_argument("--output", dest="output_image", help="Output image (overrides output_image)")
    parser.add_argument("--log-level", dest="log_level", help="Logging level, e.g. DEBUG or INFO")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """
    Load configuration from a JSON file and apply command line overrides.

    Args:
        args: Parsed command line arguments

    Returns:
        Config: Loaded configuration object.
    """
    overrides = {
        "left_image": args.left_image,
        "right_image": args.right_image,
        "output_image": args.output_image,
        "log_level": args.log_level
    }
    return Config(args.config, overrides=overrides)


def process_disparity(config: Config) -> None:
    """
    Run disparity estimation using the provided configuration.

    Args:
        config (Config): Configuration object containing processing parameters.
    """
    calculator = DisparityCalculator(config)
    calculator.create_disparity()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function to execute the disparity pipeline.

    Returns:
        int: Process exit status
    """
    args = parse_args(argv)
    logger = get_logger(__name__)
    try:
        config = load_config(args)
        LoggerConfig.configure_from(config)
        process_disparity(config)
    except (StereoDisparityError, ValueError, OSError) as e:
        logger.error(f"Processing failed: {e}")
        return 1

    logger.info("Processing completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
