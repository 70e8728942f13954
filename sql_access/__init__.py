"""
A small SQL access and transaction layer over Python DB-API drivers.

The package is organised in layers.  ``infra.db`` opens connections from
a descriptor, ``statements`` builds parameterised SQL from structured
input, ``executor`` runs statements and shapes result sets and
``transaction`` scopes a unit of work so that it commits or rolls back
as a whole.  ``services`` and ``cli`` use those layers to run the fruit
walkthrough end to end.  See individual modules for further details.
"""
