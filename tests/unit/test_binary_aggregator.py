"""Tests for binary per-quarter aggregation."""
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from sklearn.metrics import roc_auc_score

from quartereval.core.enums import OmissionScope
from quartereval.core.exceptions import DegenerateInputError
from quartereval.evaluation.binary import evaluate_binary


class TestEvaluateBinary:
    """Tests for evaluate_binary."""

    def test_quarters_in_appearance_order(self, binary_table: pd.DataFrame) -> None:
        report = evaluate_binary(binary_table, "1")
        assert [q.quarter for q in report.quarters] == ["Q1", "Q2", "Q3"]

    def test_per_quarter_auc(self, binary_table: pd.DataFrame) -> None:
        report = evaluate_binary(binary_table, "1")
        by_quarter = {q.quarter: q for q in report.quarters}
        assert by_quarter["Q1"].summary.auc == pytest.approx(0.75)
        assert by_quarter["Q2"].summary.auc == pytest.approx(1.0)

    def test_quarter_without_positives_excluded(self, binary_table: pd.DataFrame) -> None:
        """Q3 keeps its accuracy curve but has no ROC, F or AUC."""
        report = evaluate_binary(binary_table, "1")
        q3 = report.quarters[2]
        assert q3.excluded
        assert q3.roc is None
        assert q3.fscore is None
        assert q3.summary.auc is None
        assert q3.summary.max_fscore is None
        assert q3.accuracy.y[0] == pytest.approx(1.0)
        assert q3.summary.max_accuracy.value == pytest.approx(1.0)
        assert [q.quarter for q in report.valid_quarters] == ["Q1", "Q2"]

    def test_exclusion_recorded_as_omission(self, binary_table: pd.DataFrame) -> None:
        report = evaluate_binary(binary_table, "1")
        assert len(report.omissions) == 1
        omission = report.omissions[0]
        assert omission.scope is OmissionScope.QUARTER
        assert omission.quarter == "Q3"
        assert "no rows labelled '1'" in omission.reason

    def test_combined_auc_uses_every_row(self, binary_table: pd.DataFrame) -> None:
        """The pooled AUC covers the excluded quarter's rows too."""
        report = evaluate_binary(binary_table, "1")
        expected = roc_auc_score(
            (binary_table["label"] == "1").astype(int), binary_table["prediction"]
        )
        assert report.combined.summary.auc == pytest.approx(expected)
        assert report.combined.n_rows == 10
        assert report.combined.n_positive == 4

    def test_combined_has_every_curve(self, binary_table: pd.DataFrame) -> None:
        report = evaluate_binary(binary_table, "1")
        combined = report.combined
        for curve in (
            combined.accuracy,
            combined.roc,
            combined.fscore,
            combined.precision_recall,
            combined.sens_spec,
        ):
            assert len(curve.cutoffs) == 11
        assert combined.summary.quarter is None

    def test_all_positive_quarter_excluded(self, binary_table: pd.DataFrame) -> None:
        extra = pd.DataFrame(
            {
                "key": ["k11", "k12"],
                "test_on": ["Q4", "Q4"],
                "label": ["1", "1"],
                "prediction": [0.9, 0.6],
            }
        )
        report = evaluate_binary(pd.concat([binary_table, extra], ignore_index=True), "1")
        q4 = report.quarters[-1]
        assert q4.quarter == "Q4"
        assert q4.excluded
        assert any(o.quarter == "Q4" and "Every row" in o.reason for o in report.omissions)

    def test_single_class_table_fails(self, binary_table: pd.DataFrame) -> None:
        negatives = binary_table[binary_table["label"] == "0"]
        with pytest.raises(DegenerateInputError, match="Pooled table"):
            evaluate_binary(negatives, "1")

    def test_quarter_order(self, binary_table: pd.DataFrame) -> None:
        report = evaluate_binary(binary_table, "1", quarter_order=["Q2", "Q1", "Q3"])
        assert [q.quarter for q in report.quarters] == ["Q2", "Q1", "Q3"]

    def test_class_label_carried_on_summaries(self, binary_table: pd.DataFrame) -> None:
        report = evaluate_binary(binary_table, "1", class_label="1")
        assert all(s.class_label == "1" for s in report.summaries())
        assert report.omissions[0].class_label == "1"

    def test_custom_columns(self, binary_table: pd.DataFrame) -> None:
        renamed = binary_table.rename(
            columns={"test_on": "period", "label": "truth", "prediction": "score"}
        )
        report = evaluate_binary(
            renamed,
            "1",
            quarter_column="period",
            label_column="truth",
            score_column="score",
        )
        assert report.quarters[0].summary.auc == pytest.approx(0.75)

    def test_summaries_end_with_combined(self, binary_table: pd.DataFrame) -> None:
        report = evaluate_binary(binary_table, "1")
        summaries = report.summaries()
        assert [s.quarter for s in summaries] == ["Q1", "Q2", "Q3", None]

    def test_excluded_quarter_leaves_others_unchanged(self, binary_table: pd.DataFrame) -> None:
        """Dropping the degenerate Q3 rows changes no other quarter's result."""
        with_q3 = evaluate_binary(binary_table, "1")
        without_q3 = evaluate_binary(binary_table[binary_table["test_on"] != "Q3"], "1")
        assert [q.quarter for q in without_q3.quarters] == ["Q1", "Q2"]
        for before, after in zip(with_q3.quarters[:2], without_q3.quarters, strict=True):
            for kind in ("roc", "fscore"):
                b, a = getattr(before, kind), getattr(after, kind)
                np.testing.assert_array_equal(b.cutoffs, a.cutoffs)
                np.testing.assert_array_equal(b.x, a.x)
                np.testing.assert_array_equal(b.y, a.y)
            assert before.summary == after.summary
