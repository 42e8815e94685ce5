#central server: remote-call surface for field units
import argparse
import logging
from typing import List

import uvicorn
from fastapi import FastAPI, Header, Request, Response

from ..aggregator import CentralAggregator
from ..config import configure_logging, get_settings
from ..models import BatchReport, Message

logger = logging.getLogger(__name__)

SENDER_HEADER = "X-Field-Unit"


def create_app(aggregator: CentralAggregator | None = None) -> FastAPI:
    app = FastAPI(title="central-server")
    app.state.aggregator = aggregator if aggregator is not None else CentralAggregator()

    # one relayed message per call; nothing useful to return
    @app.post("/receive", status_code=204)
    def receive(msg: Message, request: Request,
                x_field_unit: str | None = Header(default=None)):
        sender = x_field_unit or (request.client.host if request.client else "unknown")
        app.state.aggregator.receive(msg, sender=sender)
        return Response(status_code=204)

    @app.get("/reports", response_model=List[BatchReport])
    def reports():
        return app.state.aggregator.reports()

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


app = create_app()


def main():
    settings = get_settings()
    configure_logging(settings.log_level)

    ap = argparse.ArgumentParser(description="central server for relayed telemetry")
    ap.add_argument("--host", default="0.0.0.0")
    ap.add_argument("--port", type=int, default=settings.central_port)
    args = ap.parse_args()

    server_app = create_app(CentralAggregator(history=settings.report_history))
    logger.info("[central] central server ready on %s:%d", args.host, args.port)
    uvicorn.run(server_app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
