import matplotlib
matplotlib.use('Agg')

import pandas as pd
import pytest

from slimnet.helpers import InteractionEdge


def make_edge(source, target, genotype = 'wt', silac_ratio = 1.5, uniprot_match = None, peptide_uniprot_id = 'P00001'):
    if uniprot_match is None:
        uniprot_match = source
    return InteractionEdge(source, target, genotype, silac_ratio, uniprot_match, peptide_uniprot_id)


@pytest.fixture
def edge_factory():
    return make_edge


@pytest.fixture
def example_edges():
    """
    A two-protein module (GeneB and GeneC both bind b1_wt and b2_wt), a single-protein star (GeneA binds a1_wt and a2_mut), and an isolated pair (GeneD binds d1_wt)
    """
    return [make_edge('GeneB', 'b1_wt', uniprot_match = 'B_match'),
            make_edge('GeneC', 'b1_wt', silac_ratio = -2.0, uniprot_match = 'C_match'),
            make_edge('GeneB', 'b2_wt', uniprot_match = 'B_match'),
            make_edge('GeneC', 'b2_wt', genotype = 'wt', silac_ratio = 0.5, uniprot_match = 'C_match'),
            make_edge('GeneA', 'a1_wt'),
            make_edge('GeneA', 'a2_mut', genotype = 'mut', silac_ratio = -1.2),
            make_edge('GeneD', 'd1_wt')]


@pytest.fixture
def two_module_edges():
    """
    Two disconnected modules of two proteins binding the same two peptides
    """
    return [make_edge('GeneB', 'b1_wt', uniprot_match = 'B_match'),
            make_edge('GeneC', 'b1_wt', uniprot_match = 'C_match'),
            make_edge('GeneB', 'b2_mut', genotype = 'mut', uniprot_match = 'B_match'),
            make_edge('GeneC', 'b2_mut', genotype = 'mut', uniprot_match = 'C_match'),
            make_edge('GeneE', 'e1_wt', uniprot_match = 'E_match'),
            make_edge('GeneF', 'e1_wt', uniprot_match = 'F_match'),
            make_edge('GeneE', 'e2_wt', uniprot_match = 'E_match'),
            make_edge('GeneF', 'e2_wt', uniprot_match = 'F_match')]


def make_enrichment(n_terms = 3, sources = None, start = 0.01):
    if sources is None:
        sources = ['BP', 'MF', 'CC', 'keg', 'rea']
    return pd.DataFrame({'Term': [f'term {i}' for i in range(n_terms)],
                         'Source': [sources[i % len(sources)] for i in range(n_terms)],
                         'P-value': [start*(n_terms - i) for i in range(n_terms)]})


@pytest.fixture
def enrichment_factory():
    return make_enrichment


@pytest.fixture
def interaction_table():
    return pd.DataFrame({'GeneName': ['GRB2', 'SHC1', 'PLCG1', 'SOS1', 'GRB2', 'PIN1'],
                         'PeptideID': ['EGFR.1068_wt', 'EGFR.1068_wt', 'EGFR.992_wt', 'SHC1.317_wt', 'EGFR.1068_mut', 'CDC25C.48_mut'],
                         'genotype': ['wt', 'wt', 'wt', 'wt', 'mut', 'mut'],
                         'LFQ_strict': [True, False, False, False, False, False],
                         'LFQ_loose': [True, True, False, False, False, True],
                         'Median.SILAC.ratio': [2.3, 1.7, 1.2, 0.4, -1.9, -1.1],
                         'Minimum.SILAC.ratio': [1.8, 1.2, -0.3, -0.1, -2.4, -1.5],
                         'Maximum.SILAC.ratio': [2.7, 2.0, 1.6, 0.9, -1.3, -0.6],
                         'uniprotMatch': ['GRB2', 'SHC1', 'PLCG1', 'SOS1', 'GRB2', 'PIN1'],
                         'PeptideUniprotID': ['P00533', 'P00533', 'P00533', 'P29353', 'P00533', 'P30307']})
