"""JSON payload encoding for completed stream blocks."""

from __future__ import annotations

import json
from typing import Any, Dict

from xrfstream.data.types import StreamBlock


class BasicSerializer:
    """Encode counts or spectra of a stream block as UTF-8 JSON bytes."""

    @staticmethod
    def _header(block: StreamBlock, kind: str) -> Dict[str, Any]:
        spectra = block.spectra
        header: Dict[str, Any] = {
            "type": kind,
            "dataset": block.dataset_name,
            "detector": int(block.detector_num),
            "row": int(block.row),
            "col": int(block.col),
            "height": int(block.height),
            "width": int(block.width),
        }
        if spectra is not None:
            header.update(
                elapsed_livetime=spectra.elapsed_livetime,
                elapsed_realtime=spectra.elapsed_realtime,
                input_counts=spectra.input_counts,
                output_counts=spectra.output_counts,
            )
        return header

    def encode_counts(self, block: StreamBlock) -> bytes:
        record = self._header(block, "counts")
        record["counts"] = block.fit_counts()
        return json.dumps(record).encode("utf-8")

    def encode_spectra(self, block: StreamBlock) -> bytes:
        if block.spectra is None:
            raise ValueError(f"stream block for detector {block.detector_num} has no spectrum")
        record = self._header(block, "spectra")
        record["spectra"] = block.spectra.data.tolist()
        return json.dumps(record).encode("utf-8")

    @staticmethod
    def decode(payload: bytes) -> Dict[str, Any]:
        try:
            record = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValueError(f"malformed payload: {exc}") from exc
        if not isinstance(record, dict) or record.get("type") not in ("counts", "spectra"):
            raise ValueError("payload is not a counts or spectra record")
        return record
