import os

package_dir = os.path.dirname(os.path.abspath(__file__))
resource_dir = package_dir + '/Resource_Files/'

#columns expected in the peptide array interaction table
gene_col = 'GeneName'
peptide_col = 'PeptideID'
genotype_col = 'genotype'
lfq_strict_col = 'LFQ_strict'
lfq_loose_col = 'LFQ_loose'
silac_col = 'Median.SILAC.ratio'
min_silac_col = 'Minimum.SILAC.ratio'
max_silac_col = 'Maximum.SILAC.ratio'
uniprot_match_col = 'uniprotMatch'
peptide_uniprot_col = 'PeptideUniprotID'
REQUIRED_COLUMNS = [gene_col, peptide_col, genotype_col, lfq_strict_col, lfq_loose_col, silac_col, min_silac_col, max_silac_col, uniprot_match_col, peptide_uniprot_col]

GENOTYPES = ['wt', 'mut']

#peptide identifiers carry an isoform/mutation suffix after this delimiter (e.g. pep1_wt), gene names do not
PEPTIDE_DELIMITER = '_'

#raw source codes returned by the enrichment service and the labels used when reporting
DOMAIN_SOURCE_NAMES = {'BP':'GO:BP', 'MF':'GO:MF', 'CC':'GO:CC', 'keg':'KEGG', 'rea':'REACTOME'}

#Enrichr libraries queried by default and the raw source code each one reports as
GENE_SET_SOURCES = {'GO_Biological_Process_2023':'BP', 'GO_Molecular_Function_2023':'MF', 'GO_Cellular_Component_2023':'CC', 'KEGG_2021_Human':'keg', 'Reactome_2022':'rea'}
DEFAULT_GENE_SETS = list(GENE_SET_SOURCES.keys())

#community thresholds (independent of each other): subgraphs need at least 3 nodes, enrichment at least 2 proteins
MIN_MEMBERS = 1
MIN_SUBGRAPH_NODES = 3
MIN_ENRICHMENT_PROTEINS = 2
TOP_TERMS = 10

#seconds to wait on a single community's enrichment before giving up on it
ENRICHMENT_TIMEOUT = 120
ENRICHR_MAX_RETRIES = 5
ENRICHR_DELAY = 10

LAYOUT_SEED = 200

#colors used across plots
node_colors = {'protein':'lightblue', 'peptide':'orange'}
genotype_colors = {'wt':'gray', 'mut':'red'}
source_colors = {'GO:BP':'#1b9e77', 'GO:MF':'#d95f02', 'GO:CC':'#7570b3', 'KEGG':'#e7298a', 'REACTOME':'#66a61e'}
