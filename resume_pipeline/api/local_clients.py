import logging
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np
import pytesseract
from pdf2image import convert_from_path
from pdf2image.exceptions import PDFPageCountError, PDFSyntaxError
from PIL import Image

from ..core.cancellation import CancellationToken, ensure_token
from ..core.exceptions import DocumentNotFoundError, OcrServiceError, StorageError
from ..core.models import OcrBlock

logger = logging.getLogger(__name__)

# image_to_data word level
WORD_LEVEL = 5


class LocalDocumentStorage:
    """Documents on disk: container = directory, key = relative path"""

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root else None

    def path_for(self, container_id: str, key: str) -> Path:
        base = Path(container_id)
        if self.root is not None and not base.is_absolute():
            base = self.root / base
        return base / key

    def read(self, container_id: str, key: str, cancel_token: Optional[CancellationToken] = None) -> bytes:
        ensure_token(cancel_token).raise_if_cancelled()
        path = self.path_for(container_id, key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise DocumentNotFoundError(f"Document not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def size(self, container_id: str, key: str, cancel_token: Optional[CancellationToken] = None) -> int:
        ensure_token(cancel_token).raise_if_cancelled()
        path = self.path_for(container_id, key)
        try:
            return path.stat().st_size
        except FileNotFoundError as e:
            raise DocumentNotFoundError(f"Document not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to stat {path}: {e}") from e

    def write(self, container_id: str, key: str, data: bytes) -> Path:
        path = self.path_for(container_id, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path


class TesseractOcrClient:
    """Renders PDF pages with pdf2image and reads them with Tesseract.

    Emits one PAGE block per page and one LINE block per recognised line.
    A line's vertical position is its page index plus its relative top
    offset on that page, so sorting by position keeps page order.
    """

    def __init__(self, storage: LocalDocumentStorage,
                 tesseract_cmd: Optional[str] = None,
                 language: str = "eng",
                 config: str = "--oem 3 --psm 6",
                 dpi: int = 300,
                 preprocess: bool = True):
        self.storage = storage
        self.language = language
        self.config = config
        self.dpi = dpi
        self.preprocess = preprocess
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """Grayscale, adaptive threshold and denoise to help Tesseract"""
        img_array = np.array(image)
        if len(img_array.shape) == 3:
            gray = cv2.cvtColor(img_array, cv2.COLOR_RGB2GRAY)
        else:
            gray = img_array

        thresh = cv2.adaptiveThreshold(
            gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY, 11, 2
        )
        return Image.fromarray(cv2.fastNlMeansDenoising(thresh))

    def detect_text(self, container_id: str, key: str,
                    cancel_token: Optional[CancellationToken] = None) -> List[OcrBlock]:
        token = ensure_token(cancel_token)
        path = self.storage.path_for(container_id, key)
        if not path.exists():
            raise OcrServiceError(f"Document not found: {path}")

        try:
            images = convert_from_path(str(path), dpi=self.dpi)
        except (PDFPageCountError, PDFSyntaxError) as e:
            raise OcrServiceError(f"Unreadable PDF {path}: {e}") from e

        blocks = []
        for page_index, image in enumerate(images):
            token.raise_if_cancelled()
            if self.preprocess:
                image = self._preprocess_image(image)
            blocks.append(OcrBlock(block_type="PAGE", vertical_position=float(page_index)))
            blocks.extend(self._page_lines(image, page_index))

        logger.info(f"Tesseract OCR finished. Path: {path}, Pages: {len(images)}, Blocks: {len(blocks)}")
        return blocks

    def _page_lines(self, image: Image.Image, page_index: int) -> List[OcrBlock]:
        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.language,
                config=self.config,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractError as e:
            raise OcrServiceError(f"Tesseract failed on page {page_index + 1}: {e}") from e
        except RuntimeError as e:
            # pytesseract raises RuntimeError on timeout
            raise OcrServiceError(f"Tesseract timed out on page {page_index + 1}: {e}", transient=True) from e

        height = float(image.height or 1)
        lines = {}
        for i, level in enumerate(data["level"]):
            word = (data["text"][i] or "").strip()
            if level != WORD_LEVEL or not word:
                continue
            line_key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            entry = lines.setdefault(line_key, {"words": [], "top": data["top"][i]})
            entry["words"].append(word)
            entry["top"] = min(entry["top"], data["top"][i])

        return [
            OcrBlock(
                block_type="LINE",
                text=" ".join(entry["words"]),
                vertical_position=page_index + entry["top"] / height,
            )
            for entry in lines.values()
        ]
