import os

import numpy as np
import pandas as pd
import pytest

from slimnet import annotate


@pytest.fixture
def compatibility():
    return pd.DataFrame({'PeptideID': ['EGFR.1068_wt', 'EGFR.1068_wt', 'EGFR.1068_wt', 'EGFR.1068_wt'],
                         'SLiM': ['LIG_SH2_GRB2like', 'LIG_SH2_STAT3', 'LIG_SH2_GRB2like', 'LIG_PTB_Phospho_1'],
                         'PFAM': ['PF00017', 'PF00017', 'PF00018', 'PF00640'],
                         'uniprotMatch': ['GRB2', 'GRB2', 'GRB2', 'SHC1']})


def test_join_unique_entries():
    assert annotate.join_unique_entries(pd.Series(['b', 'a', 'b', np.nan])) == 'a;b'
    assert np.isnan(annotate.join_unique_entries(pd.Series([np.nan, ''])))


def test_add_slim_domain_compatibility(interaction_table, compatibility, capsys):
    annotated = annotate.add_slim_domain_compatibility(interaction_table, compatibility)
    assert annotated.shape[0] == interaction_table.shape[0]
    assert annotated.loc[0, 'SLiMs'] == 'LIG_SH2_GRB2like;LIG_SH2_STAT3'
    assert annotated.loc[0, 'Compatible Domains'] == 'PF00017;PF00018'
    assert annotated.loc[1, 'Compatible Domains'] == 'PF00640'
    #mutant peptide has no compatibility entry
    assert annotated['SLiM Compatible'].tolist() == [True, True, False, False, False, False]
    assert '2 of 6 interactions' in capsys.readouterr().out


def test_add_slim_domain_compatibility_is_repeatable(interaction_table, compatibility):
    once = annotate.add_slim_domain_compatibility(interaction_table, compatibility, report_success = False)
    twice = annotate.add_slim_domain_compatibility(once, compatibility, report_success = False)
    assert list(once.columns) == list(twice.columns)
    assert twice['SLiM Compatible'].tolist() == once['SLiM Compatible'].tolist()


def test_load_compatibility_table(tmp_path, compatibility):
    table = compatibility.copy()
    table['Score'] = 1
    table = pd.concat([table, table.iloc[[0]]])
    fname = os.path.join(str(tmp_path), 'compatibility.tsv')
    table.to_csv(fname, sep = '\t', index = False)

    loaded = annotate.load_compatibility_table(fname)
    assert list(loaded.columns) == annotate.compatibility_columns
    assert loaded.shape[0] == 4


def test_load_compatibility_table_missing_columns(tmp_path, compatibility):
    fname = os.path.join(str(tmp_path), 'compatibility.csv')
    compatibility.drop(columns = 'PFAM').to_csv(fname, index = False)
    with pytest.raises(ValueError, match = 'PFAM'):
        annotate.load_compatibility_table(fname)
