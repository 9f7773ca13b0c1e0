"""Local named-entity recognition backends."""

import logging
from typing import List, Optional

from ..core.cancellation import CancellationToken, ensure_token
from ..core.models import NerEntity

logger = logging.getLogger(__name__)

# Label names used by the NER models, mapped to the pipeline's vocabulary
LABEL_MAP = {
    "PER": "PERSON",
    "PERSON": "PERSON",
    "ORG": "ORGANIZATION",
    "LOC": "LOCATION",
    "GPE": "LOCATION",
    "MISC": "OTHER",
}


def normalize_label(label: str) -> str:
    label = (label or "").upper()
    return LABEL_MAP.get(label, label)


class SpacyNerClient:
    """spaCy NER; the preferred model falls back to the small English model"""

    FALLBACK_MODEL = "en_core_web_sm"

    def __init__(self, model_name: str = "en_core_web_trf"):
        import spacy

        logger.info("Loading NLP models...")
        try:
            self.nlp = spacy.load(model_name)
            logger.info(f"Loaded NER model {model_name}")
        except OSError as e:
            logger.error(f"Error loading NLP model {model_name}: {e}")
            self.nlp = spacy.load(self.FALLBACK_MODEL)
            logger.info("Loaded fallback NLP model")

    def detect_entities(self, text: str, cancel_token: Optional[CancellationToken] = None) -> List[NerEntity]:
        ensure_token(cancel_token).raise_if_cancelled()
        doc = self.nlp(text)
        # spaCy gives no per-entity confidence
        return [NerEntity(type=normalize_label(ent.label_), text=ent.text.strip(), score=1.0) for ent in doc.ents]


class TransformersNerClient:
    """Hugging Face token-classification pipeline with simple aggregation"""

    def __init__(self, model_name: str = "dslim/bert-base-NER", use_gpu: bool = False):
        from transformers import pipeline

        logger.info(f"Loading transformers NER model {model_name}")
        self.ner = pipeline(
            "ner",
            model=model_name,
            aggregation_strategy="simple",
            device=0 if use_gpu else -1,
        )

    def detect_entities(self, text: str, cancel_token: Optional[CancellationToken] = None) -> List[NerEntity]:
        ensure_token(cancel_token).raise_if_cancelled()
        return [
            NerEntity(
                type=normalize_label(item.get("entity_group", "")),
                text=(item.get("word") or "").strip(),
                score=float(item.get("score", 0.0)),
            )
            for item in self.ner(text)
        ]


def build_ner_client(engine: str, spacy_model: str, transformers_model: str, use_gpu: bool = False):
    if engine == "transformers":
        return TransformersNerClient(transformers_model, use_gpu)
    if engine == "spacy":
        return SpacyNerClient(spacy_model)
    raise ValueError(f"Unknown NER engine: {engine}")
