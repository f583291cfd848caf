"""Tests for mcmc.exposures: resolution of the flat parameter table."""

import numpy as np
import pytest

from mcmc.exposures import ExposureDesign, ExposureEvent, ExposureType


class TestFromIndexArrays:
    def test_events_per_group(self, flat_table):
        pars, table = flat_table([[(0.0, 1)], [(0.0, 1), (10.0, 1)]], [2, 1])
        design = ExposureDesign.from_index_arrays(**table)
        assert [len(evs) for evs in design.events] == [1, 2]
        assert all(isinstance(ev, ExposureEvent) for evs in design.events for ev in evs)

    def test_event_attributes(self, flat_table):
        pars, table = flat_table([[(0.0, 1)], [(5.0, 2), (10.0, 1)]], [1, 1], n_strains=2)
        design = ExposureDesign.from_index_arrays(**table)
        ev = design.events[1][1]
        assert pars[ev.time_index] == 10.0
        assert ev.strain == 0
        assert ev.kind is ExposureType.INFECTION
        assert ev.order_index == table["order_indices"][1]
        assert ev.primed == 0.0
        np.testing.assert_array_equal(ev.kinetics_indices, [0])

    def test_cross_reactivity_index(self, flat_table):
        cr_values = [1.0, 0.3, 0.6, 1.0]
        pars, table = flat_table([[(0.0, 2)]], [1], n_strains=2, cr_values=cr_values)
        design = ExposureDesign.from_index_arrays(**table)
        # Measured strain 1 from exposure strain 2, then measured 2 from 2
        assert pars[design.cr_index[(0, 1)]] == 0.3
        assert pars[design.cr_index[(1, 1)]] == 1.0

    def test_strains_are_zero_based(self, flat_table):
        pars, table = flat_table([[(0.0, 1)]], [1], n_strains=2)
        design = ExposureDesign.from_index_arrays(**table)
        np.testing.assert_array_equal(design.strains, [0, 1])

    def test_counts(self, flat_table):
        pars, table = flat_table([[(0.0, 1)], [(0.0, 2)]], [2, 3], n_strains=2)
        design = ExposureDesign.from_index_arrays(**table)
        assert design.n_cells == 4
        assert design.n_data_rows == 10
        assert list(design.cells()) == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_shared_kinetics_block(self, flat_table):
        pars, table = flat_table([[(0.0, 1), (3.0, 1)]], [1])
        design = ExposureDesign.from_index_arrays(**table)
        evs = design.events[0]
        assert evs[0].kinetics_indices is evs[1].kinetics_indices


class TestValidation:
    def test_unknown_exposure_type(self, flat_table):
        pars, table = flat_table([[(0.0, 1)]], [1])
        table["exposure_types"][table["exposure_indices"][0]] = 9
        with pytest.raises(ValueError, match="exposure type"):
            ExposureDesign.from_index_arrays(**table)

    def test_type_without_kinetics_block(self, flat_table):
        pars, table = flat_table([[(0.0, 1)]], [1])
        table["exposure_types"][table["exposure_indices"][0]] = ExposureType.ADJUVANT
        with pytest.raises(ValueError, match="ADJUVANT"):
            ExposureDesign.from_index_arrays(**table)

    def test_missing_order_modifier(self, flat_table):
        pars, table = flat_table([[(0.0, 1)]], [1])
        table["exposure_orders"][table["exposure_indices"][0]] = 3
        with pytest.raises(ValueError, match="order"):
            ExposureDesign.from_index_arrays(**table)

    def test_exposure_strain_outside_cr_block(self, flat_table):
        pars, table = flat_table([[(0.0, 1)]], [1])
        table["exposure_strains"][table["exposure_indices"][0]] = 2
        with pytest.raises(ValueError, match="cross-reactivity"):
            ExposureDesign.from_index_arrays(**table)

    def test_measured_strain_without_cr_block(self, flat_table):
        pars, table = flat_table([[(0.0, 1)]], [1])
        table["strains"] = np.asarray([1, 2])
        with pytest.raises(ValueError, match="Measured strains"):
            ExposureDesign.from_index_arrays(**table)

    def test_too_few_group_blocks(self, flat_table):
        pars, table = flat_table([[(0.0, 1)]], [1])
        table["groups"] = np.asarray([1, 2])
        table["individuals"] = np.asarray([1, 1])
        with pytest.raises(ValueError, match="groups"):
            ExposureDesign.from_index_arrays(**table)

    def test_index_beyond_parameter_vector(self, flat_table):
        pars, table = flat_table([[(0.0, 1)]], [1])
        with pytest.raises(ValueError, match="parameter vector"):
            ExposureDesign.from_index_arrays(**table, n_pars=len(pars) - 1)
