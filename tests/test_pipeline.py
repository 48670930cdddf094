import numpy as np
import pytest

from eigenmatch.config import PipelineConfig
from eigenmatch.core.errors import EmptyInputError, DimensionMismatchError, InsufficientSamplesError
from eigenmatch.core.pipeline import EigenfacesModel, run_pipeline


def test_identical_test_set_matches_every_identity(unit_vectors):
    result = run_pipeline(unit_vectors, unit_vectors.copy(), PipelineConfig(n_components=2))

    assert result.basis.vectors.shape == (4, 2)
    assert result.train_loadings.shape == (3, 2)
    np.testing.assert_allclose(result.mean_face, [1 / 3, 1 / 3, 1 / 3, 0.0])
    for i, m in enumerate(result.matches):
        assert m.nearest_index == i
        assert m.margin == 0.0
    assert result.recognition_rate == 1.0


def test_swapped_test_images_detected(unit_vectors):
    test = unit_vectors[[1, 0, 2]]
    result = run_pipeline(unit_vectors, test, PipelineConfig(n_components=2))

    first, second, third = result.matches
    assert first.nearest_index == 1
    assert first.nearest_distance == pytest.approx(0.0, abs=1e-12)
    assert first.margin == pytest.approx(first.self_distance)
    assert first.margin > 0
    assert second.nearest_index == 0
    assert third.nearest_index == 2
    assert third.margin == 0.0
    assert result.recognition_rate == pytest.approx(1 / 3)


def test_result_table(unit_vectors):
    result = run_pipeline(unit_vectors, unit_vectors, PipelineConfig(n_components=2))
    assert result.table['train_image_index'].tolist() == [1, 2, 3]
    assert result.table['closest_test_image'].tolist() == [1, 2, 3]
    assert (result.table['distance_to_closest_test_image'] >= 0).all()


def test_too_many_components_fails_before_decomposition(unit_vectors, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("decomposition should not run")

    monkeypatch.setattr(np.linalg, "eigh", fail)
    with pytest.raises(InsufficientSamplesError):
        run_pipeline(unit_vectors, unit_vectors, PipelineConfig(n_components=4))


def test_empty_training_set():
    with pytest.raises(EmptyInputError):
        run_pipeline([], [])


def test_train_test_size_mismatch(unit_vectors):
    with pytest.raises(DimensionMismatchError) as exc_info:
        run_pipeline(unit_vectors, unit_vectors[:2], PipelineConfig(n_components=2))
    assert exc_info.value.stage == "split"


def test_progress_callback(unit_vectors):
    updates = []
    run_pipeline(unit_vectors, unit_vectors, PipelineConfig(n_components=2),
                 progress_callback=lambda pct, msg: updates.append(pct))
    assert updates == sorted(updates)
    assert updates[-1] == 100


def test_synthetic_identities_recognized(synthetic_split):
    train, test = synthetic_split
    result = run_pipeline(train.vectors, test.vectors, PipelineConfig(n_components=6, n_workers=3))
    assert result.recognition_rate == 1.0
    assert result.execution_time >= 0


def test_model_agrees_with_pipeline(synthetic_split):
    train, test = synthetic_split
    result = run_pipeline(train.vectors, test.vectors, PipelineConfig(n_components=5))

    model = EigenfacesModel(n_components=5).fit(train.vectors)
    matches = model.match(test.vectors)

    np.testing.assert_allclose(model.train_loadings, result.train_loadings)
    np.testing.assert_allclose(model.project(test.vectors), result.test_loadings)
    assert [m.nearest_index for m in matches] == [m.nearest_index for m in result.matches]


def test_model_reconstructs_training_faces(synthetic_split):
    train, _ = synthetic_split
    n = len(train)
    # rank of the centred training set is n - 1
    model = EigenfacesModel(n_components=n - 1).fit(train.vectors)
    np.testing.assert_allclose(model.reconstruct(model.train_loadings), train.vectors, atol=1e-8)


def test_model_requires_fit():
    model = EigenfacesModel()
    with pytest.raises(ValueError):
        model.project(np.zeros((1, 4)))
