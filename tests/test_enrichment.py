import threading

import pandas as pd
import pytest
import requests

from slimnet.analyze import enrichment
from slimnet.analyze.enrichment import EnrichmentServiceError, UnmappedDomainSource


class FakeEnrichr:
    def __init__(self, results):
        self.results = results


@pytest.fixture
def enrichr_results():
    return pd.DataFrame({'Gene_set': ['KEGG_2021_Human', 'GO_Biological_Process_2023', 'Custom_Library'],
                         'Term': ['ErbB signaling pathway', 'regulation of MAPK cascade', 'custom term'],
                         'P-value': [0.001, 0.0001, 0.05],
                         'Adjusted P-value': [0.01, 0.001, 0.1],
                         'Combined Score': [120.5, 300.2, 10.1],
                         'Genes': ['GRB2;SHC1', 'GRB2;SHC1;SOS1', 'GRB2'],
                         'Odds Ratio': [50, 70, 2]})


def test_query_enrichr(monkeypatch, enrichr_results):
    calls = []

    def fake_enrichr(gene_list, gene_sets, organism, outdir, no_plot):
        calls.append(gene_list)
        return FakeEnrichr(enrichr_results)

    monkeypatch.setattr(enrichment.gp, 'enrichr', fake_enrichr)
    results = enrichment.query_enrichr({'SHC1', 'GRB2'}, delay = 0)
    assert calls == [['GRB2', 'SHC1']]
    assert results['Source'].tolist() == ['keg', 'BP', 'Custom_Library']
    assert list(results.columns) == ['Term', 'Source', 'P-value', 'Adjusted P-value', 'Combined Score', 'Genes']


def test_query_enrichr_retries_then_succeeds(monkeypatch, enrichr_results):
    attempts = []

    def flaky_enrichr(**kwargs):
        attempts.append(1)
        if len(attempts) < 3:
            raise requests.exceptions.ConnectionError('service unavailable')
        return FakeEnrichr(enrichr_results)

    monkeypatch.setattr(enrichment.gp, 'enrichr', flaky_enrichr)
    results = enrichment.query_enrichr(['GRB2'], max_retries = 3, delay = 0)
    assert len(attempts) == 3
    assert results.shape[0] == 3


def test_query_enrichr_gives_up(monkeypatch):
    attempts = []

    def broken_enrichr(**kwargs):
        attempts.append(1)
        raise requests.exceptions.ConnectionError('service unavailable')

    monkeypatch.setattr(enrichment.gp, 'enrichr', broken_enrichr)
    with pytest.raises(EnrichmentServiceError, match = '2 attempts'):
        enrichment.query_enrichr(['GRB2'], max_retries = 2, delay = 0)
    assert len(attempts) == 2


def test_query_enrichr_no_terms(monkeypatch):
    monkeypatch.setattr(enrichment.gp, 'enrichr', lambda **kwargs: FakeEnrichr(pd.DataFrame()))
    results = enrichment.query_enrichr(['GRB2'], delay = 0)
    assert results.empty
    assert list(results.columns) == enrichment.enrichment_columns


def test_rename_domain_sources(enrichment_factory):
    results = enrichment_factory(n_terms = 5)
    renamed = enrichment.rename_domain_sources(results)
    assert renamed['Source'].tolist() == ['GO:BP', 'GO:MF', 'GO:CC', 'KEGG', 'REACTOME']
    #input is left untouched
    assert results['Source'].tolist() == ['BP', 'MF', 'CC', 'keg', 'rea']


def test_rename_domain_sources_unmapped(enrichment_factory):
    results = enrichment_factory(n_terms = 2, sources = ['BP', 'wp'])
    with pytest.raises(UnmappedDomainSource) as excinfo:
        enrichment.rename_domain_sources(results)
    assert excinfo.value.source == 'wp'

    renamed = enrichment.rename_domain_sources(results, source_names = {'BP': 'GO:BP', 'wp': 'WikiPathways'})
    assert renamed['Source'].tolist() == ['GO:BP', 'WikiPathways']


def test_rank_enrichment_is_stable():
    results = pd.DataFrame({'Term': ['a', 'b', 'c', 'd'], 'Source': ['BP'] * 4, 'P-value': [0.05, 0.01, 0.05, 0.001]})
    ranked = enrichment.rank_enrichment(results)
    assert ranked['Term'].tolist() == ['d', 'b', 'a', 'c']
    assert enrichment.rank_enrichment(results, top_terms = 2)['Term'].tolist() == ['d', 'b']


def test_get_community_enrichment(enrichment_factory):
    received = []

    def enrich(ids):
        received.append(ids)
        return enrichment_factory(n_terms = 4)

    results = enrichment.get_community_enrichment(['GRB2', 'SHC1', 'GRB2'], community = 3, enrich = enrich)
    assert received == [{'GRB2', 'SHC1'}]
    assert (results['Community'] == 3).all()
    assert results['P-value'].is_monotonic_increasing
    assert set(results['Source']).issubset({'GO:BP', 'GO:MF', 'GO:CC', 'KEGG', 'REACTOME'})


def test_get_community_enrichment_no_terms():
    assert enrichment.get_community_enrichment({'GRB2'}, 0, enrich = lambda ids: None) is None
    assert enrichment.get_community_enrichment({'GRB2'}, 0, enrich = lambda ids: pd.DataFrame(columns = enrichment.enrichment_columns)) is None


def test_get_community_enrichment_service_failure():
    def enrich(ids):
        raise requests.exceptions.Timeout('timed out')

    with pytest.raises(EnrichmentServiceError, match = 'community 5'):
        enrichment.get_community_enrichment({'GRB2'}, 5, enrich = enrich)


def test_get_community_enrichment_malformed_response():
    with pytest.raises(EnrichmentServiceError, match = 'P-value'):
        enrichment.get_community_enrichment({'GRB2'}, 0, enrich = lambda ids: pd.DataFrame({'Term': ['a'], 'Source': ['BP']}))


@pytest.mark.parametrize('error', [ConnectionError('connection reset by peer'), TimeoutError('read timed out'), OSError('network is unreachable')])
def test_get_community_enrichment_builtin_network_errors(error):
    def enrich(ids):
        raise error

    with pytest.raises(EnrichmentServiceError, match = 'community 2'):
        enrichment.get_community_enrichment({'GRB2'}, 2, enrich = enrich)
    with pytest.raises(EnrichmentServiceError, match = 'community 2'):
        enrichment.get_community_enrichment({'GRB2'}, 2, enrich = enrich, timeout = 5)


def test_call_with_timeout():
    release = threading.Event()

    def slow_enrich(ids):
        release.wait(10)
        return ids

    try:
        with pytest.raises(EnrichmentServiceError, match = 'within 0.2 seconds'):
            enrichment.call_with_timeout(slow_enrich, {'GRB2'}, timeout = 0.2)
    finally:
        release.set()

    assert enrichment.call_with_timeout(lambda ids: ids, {'GRB2'}, timeout = 5) == {'GRB2'}
    assert enrichment.call_with_timeout(lambda ids: ids, {'GRB2'}) == {'GRB2'}
