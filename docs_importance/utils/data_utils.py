from sklearn.datasets import load_breast_cancer, load_diabetes, make_regression
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import StandardScaler
import numpy as np

from ..core.base import Pool

# loss the reference ensemble is fitted with on every dataset
DATASET_LOSSES = {
    'diabetes': 'RMSE',
    'synthetic': 'RMSE',
    'cancer': 'Logloss',
}


def load_dataset(name, test_size=0.2, random_state=42, n_samples=300):
    """
    Load a dataset as standardized train/test splits.

    Supported: diabetes, synthetic (regression, target standardized), cancer (binary)

    Args:
        name: 'diabetes' | 'synthetic' | 'cancer'
        test_size: test share
        random_state: split / generator seed
        n_samples: size of the synthetic dataset

    Returns:
        x_train, x_test, y_train, y_test
    """
    name = name.lower()
    stratify = None

    if name == 'diabetes':
        data = load_diabetes()
        X, y = data.data, data.target
    elif name == 'synthetic':
        X, y = make_regression(n_samples=n_samples, n_features=6, n_informative=4,
                               noise=10.0, random_state=random_state)
    elif name == 'cancer':
        data = load_breast_cancer()
        X, y = data.data, data.target
        stratify = y
    else:
        raise ValueError(f"Unknown dataset: {name}")

    x_train, x_test, y_train, y_test = train_test_split(
        X, y, test_size=test_size, random_state=random_state, stratify=stratify
    )

    scaler = StandardScaler()
    x_train = scaler.fit_transform(x_train)
    x_test = scaler.transform(x_test)

    if DATASET_LOSSES[name] == 'RMSE':
        mean, std = y_train.mean(), y_train.std()
        y_train = (y_train - mean) / std
        y_test = (y_test - mean) / std

    return x_train, x_test, y_train.astype(float), y_test.astype(float)


def load_pool(path):
    """Read a pool from an .npz file with `features`, `target` and optional `weight`, `baseline`."""
    with np.load(path) as data:
        return Pool(
            data['features'],
            data['target'],
            weights=data['weight'] if 'weight' in data else None,
            baseline=data['baseline'] if 'baseline' in data else None,
        )


def save_pool(path, pool):
    np.savez(path, features=pool.features, target=pool.target, weight=pool.weights, baseline=pool.baseline)
