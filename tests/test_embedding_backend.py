"""Tests for the embedding model wrapper."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from notelink.embedding.encoder import DEFAULT_MODEL, EmbeddingConfig, EmbeddingModel


def _fake_model(dimension: int = 4) -> MagicMock:
    model = MagicMock()
    model.get_sentence_embedding_dimension.return_value = dimension
    model.encode.side_effect = lambda sentences, **kwargs: np.ones(
        (len(sentences), dimension), dtype="float64"
    )
    return model


class TestEmbeddingConfig:
    def test_defaults(self) -> None:
        config = EmbeddingConfig()
        assert config.model_name == DEFAULT_MODEL
        assert config.batch_size == 16
        assert config.normalize is True
        assert config.backend == "torch"


class TestEmbeddingModel:
    """Test EmbeddingModel wrapper."""

    @patch("notelink.embedding.encoder.SentenceTransformer")
    def test_loads_model(self, mock_st: MagicMock) -> None:
        """Should load the configured model and record its dimension."""
        mock_st.return_value = _fake_model(8)

        model = EmbeddingModel(EmbeddingConfig(model_name="tiny", device="cpu"))

        assert model.dimension == 8
        mock_st.assert_called_once_with("tiny", backend="torch", device="cpu")

    @patch("notelink.embedding.encoder.SentenceTransformer")
    def test_embed_float32(self, mock_st: MagicMock) -> None:
        """Embeddings come back as float32."""
        mock_st.return_value = _fake_model()

        embeddings = EmbeddingModel().embed(["a", "b"])

        assert embeddings.shape == (2, 4)
        assert embeddings.dtype == np.float32
        kwargs = mock_st.return_value.encode.call_args[1]
        assert kwargs["normalize_embeddings"] is True

    @patch("notelink.embedding.encoder.SentenceTransformer")
    def test_embed_query(self, mock_st: MagicMock) -> None:
        """A single query gives a single vector."""
        mock_st.return_value = _fake_model()

        assert EmbeddingModel().embed_query("q").shape == (4,)

    @patch("notelink.embedding.encoder.SentenceTransformer")
    def test_fallback_to_torch(self, mock_st: MagicMock) -> None:
        """A failing alternative backend falls back to PyTorch."""
        mock_st.side_effect = [RuntimeError("onnx missing"), _fake_model()]

        model = EmbeddingModel(EmbeddingConfig(backend="onnx"))

        assert model.config.backend == "torch"
        assert mock_st.call_count == 2

    @patch("notelink.embedding.encoder.SentenceTransformer")
    def test_torch_failure_raises(self, mock_st: MagicMock) -> None:
        """PyTorch failures propagate."""
        mock_st.side_effect = RuntimeError("broken")

        with pytest.raises(RuntimeError):
            EmbeddingModel()
