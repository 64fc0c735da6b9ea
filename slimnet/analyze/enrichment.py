import pandas as pd

import time
import concurrent.futures

#analysis packages
import gseapy as gp
import requests

from slimnet import slim_config


class EnrichmentServiceError(RuntimeError):
    """
    Raised when the enrichment service could not be reached or did not return a usable response
    """
    pass

class UnmappedDomainSource(ValueError):
    """
    Raised when an enrichment result comes from a source that has no display name in the domain source table
    """
    def __init__(self, source):
        self.source = source
        super().__init__(f"Enrichment source '{source}' has no entry in the domain source table. Available sources: {', '.join(slim_config.DOMAIN_SOURCE_NAMES.keys())}")


enrichment_columns = ['Term', 'Source', 'P-value']


def query_enrichr(ids, gene_sets = None, organism = 'human', max_retries = slim_config.ENRICHR_MAX_RETRIES, delay = slim_config.ENRICHR_DELAY):
    """
    Perform gene set enrichment for a set of genes using the enrichr API (through gseapy). Each Enrichr library is reported under its raw source code (BP, MF, CC, keg, rea).

    Parameters
    ----------
    ids: list or set
        gene identifiers to test for enrichment
    gene_sets: list
        Enrichr libraries to query. Default is None, which uses GO biological process, molecular function and cellular component, KEGG, and Reactome.
    organism: str
        organism of the gene identifiers. Default is 'human'.
    max_retries: int
        Number of times to try the enrichr API before giving up. Default is 5.
    delay: int
        Number of seconds to wait between retries. Default is 10.

    Returns
    -------
    results: pd.DataFrame
        Enrichr results with 'Term', 'Source' (raw source code), and 'P-value' columns, plus 'Adjusted P-value', 'Combined Score', and 'Genes' as returned by Enrichr
    """
    if gene_sets is None:
        gene_sets = slim_config.DEFAULT_GENE_SETS

    foreground = sorted(set(ids))
    for i in range(max_retries):
        try:
            enr = gp.enrichr(gene_list = foreground, gene_sets = gene_sets, organism = organism, outdir = None, no_plot = True)
            break
        except Exception as e:
            enrichr_error = e
            if i < max_retries - 1:
                time.sleep(delay)
    else:
        raise EnrichmentServiceError('Failed to run enrichr analysis after ' + str(max_retries) + ' attempts. Error given by EnrichR: ' + str(enrichr_error)) from enrichr_error

    results = enr.results.copy()
    if results.empty:
        return pd.DataFrame(columns = enrichment_columns)

    #report each library under its raw source code, unknown libraries keep their name
    results['Source'] = results['Gene_set'].apply(lambda x: slim_config.GENE_SET_SOURCES.get(x, x))
    extra_cols = [col for col in ['Adjusted P-value', 'Combined Score', 'Genes'] if col in results.columns]
    return results[enrichment_columns + extra_cols].reset_index(drop = True)


def rename_domain_sources(results, source_names = None):
    """
    Replace raw source codes in enrichment results with their display names (e.g. 'keg' -> 'KEGG'). A source code without a display name raises UnmappedDomainSource.

    Parameters
    ----------
    results: pd.DataFrame
        enrichment results with a 'Source' column of raw codes
    source_names: dict
        mapping from raw code to display name. Default is None, which uses slim_config.DOMAIN_SOURCE_NAMES.

    Returns
    -------
    results: pd.DataFrame
        copy of results with display names in the 'Source' column
    """
    if source_names is None:
        source_names = slim_config.DOMAIN_SOURCE_NAMES

    for source in results['Source'].unique():
        if source not in source_names:
            raise UnmappedDomainSource(source)

    results = results.copy()
    results['Source'] = results['Source'].map(source_names)
    return results


def rank_enrichment(results, top_terms = None):
    """
    Order enrichment results by ascending p-value (ties keep their original order), optionally keeping only the top terms
    """
    ranked = results.sort_values(by = 'P-value', ascending = True, kind = 'mergesort').reset_index(drop = True)
    if top_terms is not None:
        ranked = ranked.head(top_terms)
    return ranked


def call_with_timeout(enrich, ids, timeout = None):
    """
    Run an enrichment call in its own thread and stop waiting on it after timeout seconds. A call that does not finish in time is left running in the background and EnrichmentServiceError is raised.
    """
    if timeout is None:
        return enrich(ids)

    executor = concurrent.futures.ThreadPoolExecutor(max_workers = 1)
    future = executor.submit(enrich, ids)
    try:
        return future.result(timeout = timeout)
    except concurrent.futures.TimeoutError as e:
        if not future.done():
            raise EnrichmentServiceError(f'Enrichment did not finish within {timeout} seconds') from e
        raise
    finally:
        executor.shutdown(wait = False)


def get_community_enrichment(ids, community, enrich = None, source_names = None, timeout = None):
    """
    Run enrichment for the proteins in a single community and prepare the results for reporting

    Parameters
    ----------
    ids: set
        gene identifiers of the proteins in the community
    community: int
        community label, added to each enrichment record
    enrich: callable
        function that takes a set of gene identifiers and returns a dataframe with 'Term', 'Source', and 'P-value' columns. Default is None, which uses query_enrichr().
    source_names: dict
        mapping from raw source code to display name. Default is None, which uses slim_config.DOMAIN_SOURCE_NAMES.
    timeout: float
        seconds to wait for the enrichment call. Default is None, which waits indefinitely.

    Returns
    -------
    results: pd.DataFrame or None
        enrichment records ranked by p-value, or None if no terms were returned
    """
    if enrich is None:
        enrich = query_enrichr

    #builtin network errors (ConnectionError, TimeoutError) are OSErrors
    try:
        results = call_with_timeout(enrich, set(ids), timeout = timeout)
    except (requests.exceptions.RequestException, OSError) as e:
        raise EnrichmentServiceError(f'Enrichment request for community {community} failed: {e}') from e

    if results is None or len(results) == 0:
        return None

    missing = [col for col in enrichment_columns if col not in results.columns]
    if len(missing) > 0:
        raise EnrichmentServiceError(f"Enrichment results for community {community} are missing columns: {', '.join(missing)}")

    results = rename_domain_sources(results, source_names = source_names)
    results['Community'] = community
    results['P-value'] = results['P-value'].astype(float)
    return rank_enrichment(results)
