"""The Eternity II tile set and its published clues.

Edge patterns are listed N, E, S, W at rotation 0, one four-letter string per tile, tile ids in
order.  Letter 'a' is the blank border pattern and 'b' to 'w' are the motifs, following the
`jblackwood` motif order of the e2.bucas.name viewer.
"""

BOARD_SIZE = 16

TILES: tuple[str, ...] = (
    "ajra", "aftj", "abvf", "afpb", "ajef", "arcj", "ablr", "ajub",
    "afpj", "anef", "ajmn", "abpj", "afeb", "abif", "afsb", "aabf",
    "rura", "tiou", "vvsi", "ptuv", "ewst", "cugw", "lwou", "uicw",
    "pdli", "eiid", "moci", "pcto", "elec", "igoe", "sccg", "babc",
    "rifa", "ooti", "sddo", "udmd", "sggd", "lddg", "opdd", "clup",
    "lmwl", "imem", "icsw", "ttpc", "ehut", "otvh", "cwet", "bajv",
    "ftra", "tutt", "dchu", "mstc", "gvvs", "dwvv", "dwvw", "uhew",
    "wluh", "edvl", "smsd", "ptem", "upwt", "vvdc", "epem", "jarp",
    "rija", "tdoi", "hltd", "tmol", "vwom", "vcww", "vcie", "essc",
    "uhss", "vtih", "shlt", "eteh", "wdlt", "dhcd", "eigh", "rarc",
    "jhja", "oelh", "tile", "olii", "oscl", "wcss", "itpc", "scpt",
    "scic", "ilmc", "lshl", "ehhs", "lgvh", "cwvg", "ppvw", "rafp",
    "jmba", "lhmm", "lluh", "imul", "cmim", "sggm", "pppg", "pmhp",
    "iovm", "mwpo", "hsew", "hwqs", "vwiw", "vovw", "vqdo", "fafq",
    "bgba", "mhtg", "uqgh", "ucmq", "itec", "glst", "pecl", "hmse",
    "vlom", "pgtl", "ehvg", "qtoh", "ievt", "vpme", "dutp", "fafu",
    "bhfa", "tplh", "giip", "mqgi", "emdq", "sdpm", "clid", "sggl",
    "odeg", "tohd", "voho", "ocso", "vcuc", "mgoc", "tikg", "fafi",
    "flna", "lqpl", "iluq", "ghvl", "ddwh", "pdqd", "ikgd", "gepk",
    "ewie", "hodw", "hcco", "sugc", "uuou", "oegu", "kwle", "farw",
    "nqna", "pdhq", "utkd", "vkqt", "wedk", "qswe", "gpgs", "puop",
    "ihpu", "dqch", "cueq", "gqku", "ousq", "gpmu", "lswp", "rars",
    "ncna", "hqvc", "kwoq", "qwuw", "dmew", "wvdm", "gttv", "ovmt",
    "pkiv", "cslk", "epks", "kuup", "sqgu", "msgq", "wsds", "rajs",
    "nhfa", "vqwh", "ogkq", "ukvg", "eowk", "deso", "thqe", "mklh",
    "imwk", "lklm", "kqtk", "uikq", "gsui", "gtvs", "dvkt", "janv",
    "fdna", "wlqd", "kgql", "vlqg", "wqkl", "suhq", "qvqu", "limv",
    "wkpi", "loek", "tkuo", "kdck", "uqkd", "vpuq", "komp", "najo",
    "ngba", "qhqg", "qmkh", "qkkm", "kwgk", "hoqw", "qvio", "mokv",
    "pmko", "eqtm", "umiq", "cdhm", "kqed", "ukwq", "mpkk", "jajp",
    "braa", "qnar", "kjan", "kbaj", "gnab", "qban", "inab", "kban",
    "kjab", "tnaj", "iran", "hnar", "enan", "wran", "krar", "jaar",
)

CLUES: tuple[tuple[int, int, int, int], ...] = (
    # (row, col, tile_id, rotation)
    (8, 7, 135, 0),
    (2, 2, 76, 0),
    (2, 13, 179, 1),
    (13, 2, 211, 2),
    (13, 13, 125, 3),
)
