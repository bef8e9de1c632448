#!/usr/bin/env python3
"""
Catpoint Manager Server

Starts the management API server with:
- Sensor registry and activation simulation
- Arming control
- Camera image classification

Usage:
    python -m catpoint.server --data-file ./catpoint.json
"""

import argparse
import logging

import uvicorn

from .api.manager import create_app
from .hardware.image_service import FakeImageService, ImageService
from .services.repository import (
    InMemorySecurityRepository,
    JsonFileSecurityRepository,
    SecurityRepository,
)
from .services.security_service import SecurityService, SecurityServiceConfig

logger = logging.getLogger(__name__)


def build_service(args: argparse.Namespace) -> SecurityService:
    repository: SecurityRepository
    if args.data_file:
        repository = JsonFileSecurityRepository(args.data_file)
    else:
        repository = InMemorySecurityRepository()

    image_service: ImageService
    if args.classifier == "yolo":
        from .hardware.yolo_cat_detector import YOLOCatDetector
        image_service = YOLOCatDetector(model_name=args.model)
    else:
        image_service = FakeImageService()

    config = SecurityServiceConfig(
        confidence_threshold=args.confidence_threshold,
        reactivation_escalates=not args.no_reactivation_escalation,
        alarm_on_arm_home_with_cat=args.alarm_on_arm_home_with_cat,
    )
    return SecurityService(repository, image_service, config)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Catpoint Manager Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8080, help="Port to bind to")
    parser.add_argument("--data-file", help="JSON state file (in-memory when omitted)")
    parser.add_argument("--classifier", choices=["fake", "yolo"], default="fake")
    parser.add_argument("--model", default="yolo11n.pt", help="YOLO weights for --classifier yolo")
    parser.add_argument("--confidence-threshold", type=float, default=50.0,
                        help="Cat confidence threshold in percent")
    parser.add_argument("--no-reactivation-escalation", action="store_true",
                        help="Activating an already active sensor does not escalate")
    parser.add_argument("--alarm-on-arm-home-with-cat", action="store_true",
                        help="Arming HOME while a cat is in view raises the alarm")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = create_app(build_service(args))
    logger.info("Catpoint Manager on http://%s:%d (docs at /docs)", args.host, args.port)

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
