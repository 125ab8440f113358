# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.

"""
Global Foldwise unit tests fixtures.
"""
import numpy
import pandas
import pytest


@pytest.fixture(scope='session')
def classification() -> pandas.DataFrame:
    """Imbalanced binary classification dataset with numeric and nominal predictors."""
    random = numpy.random.default_rng(0)
    size = 120
    x1 = random.normal(0, 1, size)
    return pandas.DataFrame(
        {
            'x1': x1,
            'x2': x1 * 2 + random.normal(0, 0.05, size),
            'x3': random.uniform(1, 10, size),
            'color': random.choice(['blue', 'green', 'red'], size),
            'label': numpy.where(numpy.arange(size) % 10 < 3, 'yes', 'no'),
        }
    )


@pytest.fixture(scope='session')
def regression() -> pandas.DataFrame:
    """Linear regression dataset."""
    random = numpy.random.default_rng(1)
    size = 100
    x1 = random.uniform(0, 10, size)
    x2 = random.uniform(0, 5, size)
    return pandas.DataFrame({'x1': x1, 'x2': x2, 'y': 3 * x1 - 2 * x2 + random.normal(0, 0.1, size)})


@pytest.fixture(scope='session')
def titanic() -> pandas.DataFrame:
    """Titanic-like dataset with missing values."""
    random = numpy.random.default_rng(2)
    size = 80
    sex = random.choice(['male', 'female'], size)
    age = random.uniform(1, 70, size).round()
    age[::7] = numpy.nan
    embarked = random.choice(['C', 'Q', 'S'], size).astype(object)
    embarked[::11] = None
    return pandas.DataFrame(
        {
            'PassengerId': numpy.arange(1, size + 1),
            'Survived': numpy.where(sex == 'female', 1, 0) ^ (numpy.arange(size) % 9 == 0),
            'Pclass': random.choice([1, 2, 3], size),
            'Sex': sex,
            'Age': age,
            'Fare': random.uniform(5, 100, size).round(2),
            'Embarked': embarked,
        }
    )
