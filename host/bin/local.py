# Make the in-tree hexbin package importable from a source checkout

from os.path import dirname, isdir, join as joinpath, normpath, pardir
from sys import path as syspath, version_info

PY_REQ_VERSION = (3, 7)

if version_info[:2] < PY_REQ_VERSION:
    raise RuntimeError("Python %s+ is required" %
                       '.'.join(['%d' % ver for ver in PY_REQ_VERSION]))

libdir = normpath(joinpath(dirname(__file__), pardir, pardir, 'library', 'py'))
if isdir(libdir) and libdir not in syspath:
    syspath.insert(0, libdir)
