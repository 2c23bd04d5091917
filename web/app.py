"""FastAPI web adapter for the LC-3 emulator."""

import base64
import binascii
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from lc3 import run_program, RunOptions


# Constants
MAX_IMAGE_SIZE = 2 * (1 << 16) + 2  # origin word plus a full address space
MAX_IMAGES = 16


# Request/Response models
class RunOptionsModel(BaseModel):
    start_address: Optional[int] = Field(default=None, ge=0, le=0xFFFF)
    max_steps: int = Field(default=1_000_000, ge=1, le=1_000_000)
    trace: bool = False
    trace_watch: list[int] = Field(default_factory=list)
    trace_include_registers: bool = True
    trace_include_io: bool = True
    initial_memory: dict[str, int] = Field(default_factory=dict)


class RunRequest(BaseModel):
    images: list[str] = Field(min_length=1, description="Base64-encoded object images")
    input: str = ""
    options: Optional[RunOptionsModel] = None


class RunResponse(BaseModel):
    status: str
    output_text: str
    steps_executed: int
    final_state: dict
    trace_watch: list[int]
    trace: list[dict]
    error: Optional[dict] = None


# Create FastAPI app
app = FastAPI(
    title="LC-3 Emulator",
    description="Web API for running LC-3 object images with tracing",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _decode_image(index: int, encoded: str) -> bytes:
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail=f"Image {index} is not valid base64")
    if len(data) > MAX_IMAGE_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"Image {index} exceeds limit of {MAX_IMAGE_SIZE} bytes",
        )
    return data


@app.post("/api/run", response_model=RunResponse)
async def run_code(request: RunRequest):
    """Run LC-3 object images.

    Args:
        request: Images, keyboard input, and execution options

    Returns:
        Execution result with output, trace, and final state
    """
    if len(request.images) > MAX_IMAGES:
        raise HTTPException(
            status_code=400,
            detail=f"At most {MAX_IMAGES} images per request",
        )
    images = [_decode_image(i, encoded) for i, encoded in enumerate(request.images)]

    # Build options
    opts = request.options or RunOptionsModel()

    # Convert initial_memory keys from string to int
    initial_memory = {}
    for k, v in opts.initial_memory.items():
        try:
            initial_memory[int(k, 0)] = v
        except ValueError:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid memory address key: {k}",
            )

    run_opts = RunOptions(
        start_address=opts.start_address,
        max_steps=opts.max_steps,
        trace=opts.trace,
        trace_watch=opts.trace_watch,
        trace_include_registers=opts.trace_include_registers,
        trace_include_io=opts.trace_include_io,
        initial_memory=initial_memory,
    )

    result = run_program(images, input_text=request.input, options=run_opts)

    return result.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
