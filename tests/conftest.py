"""Shared fixtures: a miniature FlyWire export written to disc."""

import gzip

import pytest


def write_table(directory, name, lines):
    """Write lines as <directory>/<name>.csv.gz."""
    path = directory / f"{name}.csv.gz"
    with gzip.open(path, "wt", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    return path


# Six cells: 1-3 classified, 4-6 only ever referenced by other tables.
MINI_EXPORT = {
    "classification": [
        "root_id,flow,super_class,class,sub_class,cell_type,hemibrain_type,hemilineage,side,nerve",
        "1,intrinsic,central,MBON,,MBON01,MBON01,,right,",
        "2,intrinsic,central,KC,,KC_g,KC_g,,left,",
        '3,afferent,sensory,ORN,,ORN_DA1,,,right,"AN, left"',
    ],
    "cell_stats": [
        "root_id,length_nm,area_nm,size_nm",
        "1,1200,5000,900",
        "4,10,20,30",
    ],
    "column_assignment": [
        "root_id,hemisphere,type,column_id,x,y,p,q",
        "2,right,T4a,17,-3,4,1,-2",
    ],
    "connectivity_tags": [
        "root_id,connectivity_tag",
        '1,"rich_club,broadcaster"',
        "2,",
    ],
    "consolidated_cell_types": [
        "root_id,primary_type,additional_type(s)",
        '1,MBON01,"MBON-a, MBON-b"',
    ],
    "coordinates": [
        "root_id,position,supervoxel_id",
        "1,[100 200 300],77",
        "2,,78",
    ],
    "labels": [
        "root_id,label,user_id,position,supervoxel_id,label_id,date_created,user_name,user_affiliation",
        '1,"putative MBON',
        'left side",7,[1 2 3],55,900,2023-06-01 12:00:00+02:00,alice,lab1',
        "2,KC,7,,56,901,2023-06-02 08:30:00,alice,lab1",
    ],
    "names": [
        "root_id,name,group",
        "1,MBON01_R,MBON01",
        "2,KC_g_L,KC_g",
    ],
    "neurons": [
        "root_id,group,nt_type,nt_type_score,da_avg,ser_avg,gaba_avg,glut_avg,ach_avg,oct_avg",
        "1,MBON01,ACH,0.91,0.01,0.0,0.02,0.03,0.91,0.03",
    ],
    "processed_labels": [
        "root_id,processed_labels",
        "1,\"['MBON01','output neuron']\"",
    ],
    "synapse_attachment_rates": [
        "neuropil,count_total,count_proof,proof_ratio,side",
        "MB_CA_R,1000,800,0.8,pre",
        "MB_CA_R,2000,1000,0.5,post",
        "AL_L,10,5,0.5,both",
    ],
    "synapse_coordinates": [
        "pre_root_id,post_root_id,x,y,z",
        "1,2,10,20,30",
        ",,11,21,31",
        "2,5,40,50,60",
    ],
    "visual_neuron_types": [
        "root_id,type,family,subsystem,category,side",
        "2,T4a,T4,motion,columnar,right",
    ],
    "connections": [
        "pre_root_id,post_root_id,neuropil,syn_count,nt_type",
        "1,2,MB_CA_R,12,ACH",
        "2,6,LH_R,5,GABA",
    ],
}

NEUROPIL_SYNAPSE_TABLE = [
    "root_id,input synapses,input partners,output synapses,output partners,"
    "input synapses MB_CA_R,input partners MB_CA_R,"
    "output synapses MB_CA_R,output partners MB_CA_R",
    "1,10,2,0,0,10,2,0,0",
]


@pytest.fixture
def mini_export(tmp_path):
    """Directory holding every required table of a tiny export."""
    for name, lines in MINI_EXPORT.items():
        write_table(tmp_path, name, lines)
    return tmp_path
