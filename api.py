from __future__ import annotations

import os
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from archscan.catalogue import default_config
from archscan.config import ScanConfig
from archscan.engine import analyze
from archscan.errors import FatalConfigError
from archscan.model import AnalysisRun


app = FastAPI(title="Architecture Scan")


class AnalyzeRequest(BaseModel):
	root_path: str
	config: Optional[ScanConfig] = None
	workers: Optional[int] = None


@app.post("/analyze", response_model=AnalysisRun)
def analyze_root(req: AnalyzeRequest) -> AnalysisRun:
	root = os.path.abspath(req.root_path)
	if req.config is not None:
		config = req.config.model_copy(update={"root": root})
	else:
		config = default_config(root)
	try:
		return analyze(config, workers=req.workers)
	except FatalConfigError as exc:
		raise HTTPException(status_code=400, detail=str(exc))


def create_app() -> FastAPI:
	return app
