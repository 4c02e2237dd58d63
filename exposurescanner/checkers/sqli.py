import re
from typing import List, Optional, Sequence

import httpx

from exposurescanner.checkers.base import BaseChecker
from exposurescanner.core.models import (
    BaselineData, VulnerableParam, ERROR_SIGNATURE, LENGTH_DIVERGENCE,
)


# Benign probes: tautologies, comment terminators, UNION probes
SQL_PAYLOADS = (
    "' OR '1'='1",
    "'",
    "' OR '1'='1' -- ",
    '" OR "1"="1',
    "1' OR 1=1-- -",
    "' UNION SELECT NULL-- -",
    "') OR ('1'='1",
    "1 OR 1=1",
)

# Real driver errors only, nothing that a reflected payload would match
SQL_ERROR_SIGNATURES = (
    # MySQL / MariaDB
    r"SQL syntax.*MySQL",
    r"You have an error in your SQL syntax",
    r"Warning.*mysql_",
    r"MySqlException",
    r"valid MySQL result",
    r"Unknown column '[^']+' in '",
    # PostgreSQL
    r"PostgreSQL.*ERROR",
    r"Warning.*\Wpg_",
    r"syntax error at or near",
    r"unterminated quoted string at or near",
    r"Npgsql\.",
    # MSSQL
    r"Unclosed quotation mark after the character string",
    r"Incorrect syntax near",
    r"ODBC SQL Server Driver",
    r"SQLServer JDBC Driver",
    r"System\.Data\.SqlClient\.",
    # Oracle
    r"\bORA-\d{5}",
    r"Oracle error",
    r"quoted string not properly terminated",
    # SQLite
    r"SQLite/JDBCDriver",
    r"SQLite\.Exception",
    r"System\.Data\.SQLite\.SQLiteException",
    r"sqlite3\.OperationalError",
    r"\[SQLITE_ERROR\]",
    r"unrecognized token:",
    # MS Access
    r"Microsoft Access Driver",
    r"Microsoft JET Database Engine",
    r"Syntax error in query expression",
    # PDO / generic drivers
    r"PDOException",
    r"SQLSTATE\[\w+\]",
)


class SQLi(BaseChecker):
    """
    Differential SQL injection check.
    A parameter is flagged when the injected response either:
      1) carries a database driver error signature, or
      2) differs from the baseline body length by more than length_threshold
         characters. This is a coarse approximation: dynamic pages (ads,
         timestamps, CSRF tokens) trip it too.
    """

    name = "SQL Injection"

    def __init__(self, payloads: Sequence[str] = SQL_PAYLOADS,
                 signatures: Sequence[str] = SQL_ERROR_SIGNATURES,
                 length_threshold: int = 100, evidence_limit: int = 500):
        self.payloads = list(payloads)
        self.length_threshold = length_threshold
        self.evidence_limit = evidence_limit
        self._err_compiled = [re.compile(p, re.I) for p in signatures]

    def get_payloads(self) -> List[str]:
        return self.payloads

    def match_error(self, body: str) -> Optional[re.Match]:
        for rx in self._err_compiled:
            m = rx.search(body)
            if m:
                return m
        return None

    def check(self, param: str, baseline: BaselineData,
              response: httpx.Response, payload: str) -> Optional[VulnerableParam]:
        body = response.text or ""

        # Error-based
        m = self.match_error(body)
        if m:
            return VulnerableParam(
                parameter=param, payload=payload,
                evidence_type=ERROR_SIGNATURE,
                evidence=self.snippet(body, m.start(), self.evidence_limit),
            )

        # Length divergence
        if abs(len(body) - baseline.body_length) > self.length_threshold:
            return VulnerableParam(
                parameter=param, payload=payload,
                evidence_type=LENGTH_DIVERGENCE,
                evidence=body[:self.evidence_limit],
            )

        return None
