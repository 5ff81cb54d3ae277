"""Cypher statements for the repository subgraph.

Schema::

    (:Repo {repoId})-[:HAS_NAMESPACE]->(:CodeNamespace {nsId})
        -[:CONTAINS_FILE]->(:File {fileId})-[:DECLARES]->(:Symbol {sid})

``nsId`` is ``repoId:name``, ``fileId`` is ``repoId:path``, ``sid`` is the
stable symbol id.
"""

CONSTRAINTS = (
    "CREATE CONSTRAINT repo_id IF NOT EXISTS FOR (r:Repo) REQUIRE r.repoId IS UNIQUE",
    "CREATE CONSTRAINT ns_id IF NOT EXISTS FOR (n:CodeNamespace) REQUIRE n.nsId IS UNIQUE",
    "CREATE CONSTRAINT file_id IF NOT EXISTS FOR (f:File) REQUIRE f.fileId IS UNIQUE",
    "CREATE CONSTRAINT symbol_id IF NOT EXISTS FOR (s:Symbol) REQUIRE s.sid IS UNIQUE",
)

DELETE_SYMBOLS = """
MATCH (r:Repo {repoId: $repoId})-[:HAS_NAMESPACE]->(:CodeNamespace)
      -[:CONTAINS_FILE]->(:File)-[:DECLARES]->(s:Symbol)
DETACH DELETE s
"""

DELETE_FILES = """
MATCH (r:Repo {repoId: $repoId})-[:HAS_NAMESPACE]->(:CodeNamespace)-[:CONTAINS_FILE]->(f:File)
DETACH DELETE f
"""

DELETE_NAMESPACES = """
MATCH (r:Repo {repoId: $repoId})-[:HAS_NAMESPACE]->(n:CodeNamespace)
DETACH DELETE n
"""

DELETE_REPO = """
MATCH (r:Repo {repoId: $repoId})
DETACH DELETE r
"""

MERGE_REPO = """
MERGE (r:Repo {repoId: $repoId})
SET r.name = $name,
    r.gitUrl = $gitUrl,
    r.branch = $branch,
    r.sha = $sha,
    r.indexedAt = datetime()
"""

MERGE_NAMESPACES = """
UNWIND $namespaces AS ns
MERGE (n:CodeNamespace {nsId: ns.nsId})
SET n.name = ns.name, n.rootPath = ns.rootPath, n.repoId = $repoId
WITH n
MATCH (r:Repo {repoId: $repoId})
MERGE (r)-[:HAS_NAMESPACE]->(n)
"""

MERGE_FILES = """
UNWIND $files AS f
MERGE (file:File {fileId: f.fileId})
SET file.path = f.path,
    file.language = f.language,
    file.hash = f.hash,
    file.repoId = $repoId
WITH file, f
MATCH (n:CodeNamespace {nsId: f.nsId})
MERGE (n)-[:CONTAINS_FILE]->(file)
"""

MERGE_SYMBOLS = """
UNWIND $symbols AS s
MERGE (sym:Symbol {sid: s.sid})
SET sym.name = s.name,
    sym.kind = s.kind,
    sym.signature = s.signature,
    sym.startLine = s.startLine,
    sym.endLine = s.endLine,
    sym.filePath = s.filePath,
    sym.namespace = s.namespace,
    sym.repoId = $repoId
WITH sym, s
MATCH (file:File {fileId: s.fileId})
MERGE (file)-[:DECLARES]->(sym)
"""

FIND_SYMBOLS_BY_NAME = """
MATCH (r:Repo {repoId: $repoId})-[:HAS_NAMESPACE]->(n:CodeNamespace)
      -[:CONTAINS_FILE]->(f:File)-[:DECLARES]->(s:Symbol)
WHERE toLower(s.name) = toLower($name)
RETURN s AS symbol, f AS file, n AS namespace
ORDER BY f.path, s.startLine
LIMIT $limit
"""

GET_NAMESPACES = """
MATCH (r:Repo {repoId: $repoId})-[:HAS_NAMESPACE]->(n:CodeNamespace)
RETURN n.name AS name, n.rootPath AS rootPath
ORDER BY n.name
"""
