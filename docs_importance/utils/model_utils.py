import pickle

from ..core.base import InconsistentStateError, ObliviousEnsemble, TreeStatistics

BUNDLE_KEYS = ('ensemble', 'tree_statistics', 'params')


def save_model_bundle(path, ensemble, tree_statistics, **params):
    '''
    Store a fitted ensemble together with its training statistics and the
    fitting parameters (loss_function, learning_rate, ...) needed to explain it
    '''
    bundle = {'ensemble': ensemble, 'tree_statistics': list(tree_statistics), 'params': params}
    with open(path, 'wb') as f:
        pickle.dump(bundle, f)


def load_model_bundle(path):
    '''
    Returns (ensemble, tree_statistics, params)
    '''
    with open(path, 'rb') as f:
        bundle = pickle.load(f)
    missing = [key for key in BUNDLE_KEYS if key not in bundle]
    if missing:
        raise InconsistentStateError(f'Model bundle {path} misses {missing}')
    if not isinstance(bundle['ensemble'], ObliviousEnsemble):
        raise InconsistentStateError('Bundle ensemble should be an ObliviousEnsemble')
    if not all(isinstance(s, TreeStatistics) for s in bundle['tree_statistics']):
        raise InconsistentStateError('Bundle statistics should be TreeStatistics')
    return bundle['ensemble'], bundle['tree_statistics'], bundle['params']
