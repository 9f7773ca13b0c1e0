import pytest

from resume_pipeline.core.exceptions import UnsupportedFileTypeError
from resume_pipeline.core.file_router import FileType, FileTypeRouter, get_extension
from resume_pipeline.core.models import DocumentIdentity


@pytest.fixture
def router():
    return FileTypeRouter()


def identity(key):
    return DocumentIdentity(container_id="bucket", key=key)


@pytest.mark.parametrize("key,expected", [
    ("resume.pdf", FileType.PDF),
    ("private/u1/Resume.PDF", FileType.PDF),
    ("cv.docx", FileType.DOCX),
    ("CV.DocX", FileType.DOCX),
    ("notes.txt", FileType.UNKNOWN),
    ("legacy.doc", FileType.UNKNOWN),
    ("no_extension", FileType.UNKNOWN),
    ("private/u/.pdf", FileType.PDF),
    ("trailing.", FileType.UNKNOWN),
])
def test_classify(router, key, expected):
    assert router.classify(identity(key)) == expected
    assert identity(key).file_type == expected


def test_select_returns_matching_strategy(router):
    strategies = {FileType.PDF: "ocr", FileType.DOCX: "docx"}
    assert router.select(identity("a.PDF"), strategies) == "ocr"
    assert router.select(identity("a.docx"), strategies) == "docx"


def test_select_unknown_type_raises_with_extension(router):
    with pytest.raises(UnsupportedFileTypeError) as exc_info:
        router.select(identity("photo.JPG"), {FileType.PDF: "ocr"})
    assert exc_info.value.extension == ".jpg"
    assert exc_info.value.error_code == "UNSUPPORTED_FILE_TYPE"


def test_get_extension():
    assert get_extension("a/b/c.tar.PDF") == ".pdf"
    assert get_extension("") == ""
    assert get_extension("private/u/.pdf") == ".pdf"
    assert get_extension("dir.v2/README") == ""
    assert get_extension("resume.") == ""
