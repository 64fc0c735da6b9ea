import re

#packages for web interfacing
import requests
from requests.adapters import HTTPAdapter, Retry

uniprot_search_url = 'https://rest.uniprot.org/uniprotkb/search'


#UniProt accession services adapted from suggested python code on UniProt website
def establish_session():
    """
    Establish a session for interfacing with the UniProt REST API, retrying on server errors
    """
    re_next_link = re.compile(r'<(.+)>; rel="next"')
    retries = Retry(total=5, backoff_factor=0.25, status_forcelist=[500, 502, 503, 504])
    session = requests.Session()
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session, re_next_link

def get_next_link(headers, re_next_link):
    """
    Given a header, return the next link associated with the header, if there is one
    """
    if "Link" in headers:
        match = re_next_link.match(headers["Link"])
        if match:
            return match.group(1)

def get_batch(batch_url, session, re_next_link, timeout = 60):
    """
    Iterate through the pages of a UniProt query, yielding each response and the total number of results
    """
    while batch_url:
        response = session.get(batch_url, timeout = timeout)
        response.raise_for_status()
        total = response.headers.get("x-total-results")
        yield response, total
        batch_url = get_next_link(response.headers, re_next_link)

def build_accession_query(accessions):
    """
    Build the UniProt search query for a set of accessions (isoform suffixes like -2 are dropped)
    """
    accessions = sorted(set([acc.split('-')[0] for acc in accessions]))
    return ' OR '.join([f'accession:{acc}' for acc in accessions])

def get_uniprot_gene_names(accessions, batch_size = 100, session = None):
    """
    Construct a dictionary for converting from UniProt IDs to the gene names associated with that ID

    Parameters
    ----------
    accessions: list
        UniProt accessions to look up
    batch_size: int
        number of accessions to include in a single query. Default is 100.
    session: requests.Session
        session to use for the queries. Default is None, which will establish a new session with retries.

    Returns
    -------
    dict
        Dictionary where keys are UniProt IDs and values are gene names associated with that ID separated by a space
    """
    accessions = [acc for acc in accessions if isinstance(acc, str) and acc != '']
    if len(accessions) == 0:
        return {}

    #start up session for interfacting with rest api
    if session is None:
        session, re_next_link = establish_session()
    else:
        re_next_link = re.compile(r'<(.+)>; rel="next"')

    id_to_gene = {}
    for i in range(0, len(accessions), batch_size):
        query = build_accession_query(accessions[i:i+batch_size])
        url = requests.Request('GET', uniprot_search_url, params = {'query': query, 'format':'tsv', 'fields':'accession,gene_names', 'size':500}).prepare().url
        for batch, total in get_batch(url, session, re_next_link):
            for line in batch.text.splitlines()[1:]:
                primaryAccession, gene_names = line.split('\t')
                id_to_gene[primaryAccession] = gene_names

    #isoform accessions map to the gene names of their canonical entry
    for acc in accessions:
        canonical = acc.split('-')[0]
        if acc not in id_to_gene and canonical in id_to_gene:
            id_to_gene[acc] = id_to_gene[canonical]
    return id_to_gene
