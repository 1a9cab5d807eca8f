"""
Unit tests for the SRPR trainer
"""

import math
from dataclasses import replace
from unittest.mock import patch

import numpy as np
import pytest

from srpr.data import Triplet, UserItemStore
from srpr.training import SRPRTrainer, TrainingStats, triplet_gradients


def make_trainer(triplets, config, dimensions=4, seed=42):
    store = UserItemStore(dimensions=dimensions, seed=seed)
    store.initialize(triplets)
    return store, SRPRTrainer(store, config)


class TestTrainingLoop:
    """Test the epoch loop and its statistics"""

    def test_empty_training_set_raises(self, sample_store, quiet_config):
        """Training needs at least one triplet"""
        trainer = SRPRTrainer(sample_store, quiet_config)
        with pytest.raises(ValueError):
            trainer.train([])

    def test_runs_all_epochs_without_convergence(self, sample_triplets, quiet_config):
        """With a negligible tolerance every epoch runs"""
        _, trainer = make_trainer(sample_triplets, quiet_config)
        stats = trainer.train(sample_triplets)

        assert stats.num_epochs == quiet_config.epochs
        assert stats.total_updates == quiet_config.epochs * len(sample_triplets)
        assert stats.final_loss == stats.epoch_losses[-1]
        assert stats.training_time_ms > 0
        assert not stats.converged

    def test_objective_does_not_degrade(self, catalog_triplets, quiet_config):
        """Small learning rate: the epoch objective never drops beyond noise"""
        config = replace(quiet_config, epochs=15, learning_rate=1e-4, embedding_dim=8)
        _, trainer = make_trainer(catalog_triplets, config, dimensions=8)
        stats = trainer.train(catalog_triplets)

        losses = stats.epoch_losses
        assert all(later >= earlier - 1e-6 for earlier, later in zip(losses, losses[1:]))
        assert stats.improvement >= -1e-6

    def test_convergence_detection(self, sample_triplets, quiet_config):
        """Consecutive epoch losses within tolerance stop training at epoch 2"""
        config = replace(quiet_config, epochs=50, learning_rate=1e-9, convergence_tolerance=1e-3)
        _, trainer = make_trainer(sample_triplets, config)
        stats = trainer.train(sample_triplets)

        assert stats.converged
        assert stats.num_epochs == 2

    def test_validation_frequency(self, sample_triplets, quiet_config):
        """Validation runs every validation_freq epochs"""
        config = replace(quiet_config, epochs=6, validation_freq=2)
        _, trainer = make_trainer(sample_triplets, config)
        stats = trainer.train(sample_triplets, validation_triplets=sample_triplets[:1])

        assert len(stats.validation_scores) == 3
        assert stats.best_validation_score == max(stats.validation_scores)

    def test_no_validation_without_triplets(self, sample_triplets, quiet_config):
        _, trainer = make_trainer(sample_triplets, quiet_config)
        stats = trainer.train(sample_triplets)

        assert stats.validation_scores == []
        assert stats.best_validation_score is None


class TestUpdateRule:
    """Test gradient ascent and weight decay"""

    def test_single_step_matches_closed_form_gradient(self, quiet_config):
        """One triplet, one epoch, no decay: v += lr * grad"""
        triplet = Triplet(1, 10, 20)
        config = replace(quiet_config, epochs=1, learning_rate=0.05)
        store, trainer = make_trainer([triplet], config)

        x_u = store.get_user_vector(1).copy()
        y_i = store.get_item_vector(10).copy()
        y_j = store.get_item_vector(20).copy()
        grads = triplet_gradients(x_u, y_i, y_j, config.b_lsh_length)

        trainer.train([triplet])

        np.testing.assert_allclose(store.get_user_vector(1), x_u + 0.05 * grads.user)
        np.testing.assert_allclose(store.get_item_vector(10), y_i + 0.05 * grads.preferred)
        np.testing.assert_allclose(store.get_item_vector(20), y_j + 0.05 * grads.less_preferred)

    def test_weight_decay_applies_when_saturated(self, quiet_config):
        """A saturated triplet has no gradient step but still decays"""
        triplet = Triplet(1, 10, 20)
        config = replace(quiet_config, epochs=1, learning_rate=0.1, regularization=0.5)
        store, trainer = make_trainer([triplet], config, dimensions=3)

        x = np.array([1.0, 0.5, -0.2])
        store.get_user_vector(1)[:] = x
        store.get_item_vector(10)[:] = x
        store.get_item_vector(20)[:] = -x

        trainer.train([triplet])

        factor = 1.0 - 0.1 * 0.5
        np.testing.assert_allclose(store.get_user_vector(1), factor * x)
        np.testing.assert_allclose(store.get_item_vector(10), factor * x)
        np.testing.assert_allclose(store.get_item_vector(20), -factor * x)


class TestUnknownIds:
    """Test per-triplet skipping of unknown ids"""

    def test_unknown_triplets_are_skipped(self, sample_store, sample_triplets, quiet_config):
        """Training continues past triplets with unknown ids"""
        trainer = SRPRTrainer(sample_store, quiet_config)
        triplets = sample_triplets + [Triplet(99, 10, 20), Triplet(1, 10, 999)]
        stats = trainer.train(triplets)

        assert stats.skipped_triplets == 2 * quiet_config.epochs
        assert stats.total_updates == len(sample_triplets) * quiet_config.epochs
        assert math.isfinite(stats.final_loss)

    def test_all_unknown_gives_nan_loss(self, sample_store, quiet_config):
        trainer = SRPRTrainer(sample_store, replace(quiet_config, epochs=2))
        stats = trainer.train([Triplet(99, 98, 97)])

        assert stats.total_updates == 0
        assert all(math.isnan(loss) for loss in stats.epoch_losses)
        assert math.isnan(trainer.calculate_total_loss([Triplet(99, 98, 97)]))


class TestEvaluationHelpers:
    """Test loss, gradient-norm and ranking-accuracy helpers"""

    def test_calculate_total_loss_is_mean(self, sample_store, sample_triplets, quiet_config):
        trainer = SRPRTrainer(sample_store, quiet_config)
        expected = np.mean([trainer.evaluate_triplet(t) for t in sample_triplets])
        assert trainer.calculate_total_loss(sample_triplets) == pytest.approx(expected)

    def test_gradient_norms(self, sample_store, sample_triplets, quiet_config):
        trainer = SRPRTrainer(sample_store, quiet_config)
        norms = trainer.gradient_norms(sample_triplets + [Triplet(99, 10, 20)])

        assert len(norms) == 3 * len(sample_triplets)
        assert all(n >= 0 for n in norms)

    def test_ranking_accuracy(self, quiet_config):
        """Dot-product ordering of preferred over less-preferred items"""
        store = UserItemStore(dimensions=2, seed=0)
        store.initialize([Triplet(1, 10, 20)])
        store.get_user_vector(1)[:] = [1.0, 0.0]
        store.get_item_vector(10)[:] = [1.0, 0.0]
        store.get_item_vector(20)[:] = [-1.0, 0.0]
        trainer = SRPRTrainer(store, quiet_config)

        assert trainer.ranking_accuracy([Triplet(1, 10, 20)]) == 1.0
        assert trainer.ranking_accuracy([Triplet(1, 20, 10)]) == 0.0
        assert trainer.ranking_accuracy([Triplet(5, 10, 20)]) == 0.0


class TestMLflowTracking:
    """Test MLflow integration"""

    def test_no_tracking_without_uri(self, sample_triplets, quiet_config):
        _, trainer = make_trainer(sample_triplets, quiet_config)
        with patch("srpr.training.trainer.mlflow") as mock_mlflow:
            trainer.train(sample_triplets)

        mock_mlflow.start_run.assert_not_called()
        mock_mlflow.log_metric.assert_not_called()

    def test_logs_params_and_metrics(self, sample_triplets, quiet_config):
        config = replace(quiet_config, epochs=3, mlflow_tracking_uri="file:///tmp/mlruns")
        _, trainer = make_trainer(sample_triplets, config)

        with patch("srpr.training.trainer.mlflow") as mock_mlflow:
            trainer.train(sample_triplets, validation_triplets=sample_triplets)

        mock_mlflow.set_tracking_uri.assert_called_once_with("file:///tmp/mlruns")
        mock_mlflow.start_run.assert_called_once()
        mock_mlflow.log_params.assert_called_once_with(config.to_dict())
        metric_names = [c.args[0] for c in mock_mlflow.log_metric.call_args_list]
        assert metric_names.count("train_loss") == 3
        assert metric_names.count("val_loss") == 3
        mock_mlflow.log_metrics.assert_called_once()
        mock_mlflow.end_run.assert_called_once()

    def test_run_is_ended_when_setup_fails(self, sample_triplets, quiet_config):
        """A run opened before a logging failure is still closed"""
        config = replace(quiet_config, mlflow_tracking_uri="file:///tmp/mlruns")
        _, trainer = make_trainer(sample_triplets, config)

        with patch("srpr.training.trainer.mlflow") as mock_mlflow:
            mock_mlflow.log_params.side_effect = RuntimeError("tracking server down")
            with pytest.raises(RuntimeError):
                trainer.train(sample_triplets)

        mock_mlflow.start_run.assert_called_once()
        mock_mlflow.end_run.assert_called_once()
        mock_mlflow.log_metric.assert_not_called()


class TestTrainingStats:
    """Test derived statistics"""

    def test_derived_properties(self):
        stats = TrainingStats(
            epoch_losses=[-0.9, -0.7, -0.6],
            validation_scores=[-0.8, -0.65],
            final_loss=-0.6,
            training_time_ms=2000.0,
            total_updates=300,
        )
        assert stats.num_epochs == 3
        assert stats.improvement == pytest.approx(0.3)
        assert stats.best_validation_score == -0.65
        assert stats.updates_per_second == pytest.approx(150.0)
        assert stats.to_dict()["total_updates"] == 300

    def test_empty_stats(self):
        stats = TrainingStats()
        assert stats.improvement == 0.0
        assert stats.best_validation_score is None
        assert stats.updates_per_second == 0.0
