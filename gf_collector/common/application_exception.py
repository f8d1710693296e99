# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License"). You may not use this file except in compliance
# with the License. A copy of the License is located at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# or in the 'license' file accompanying this file. This file is distributed on an 'AS IS' BASIS, WITHOUT WARRANTIES
# OR CONDITIONS OF ANY KIND, express or implied. See the License for the specific language governing permissions
# and limitations under the License.


class CollectorError(Exception):
    """Base class for every error the collector raises."""


class SourceQueryError(CollectorError):
    """A CloudWatch call failed (auth, throttling, invalid query)."""

    def __init__(self, code, message):
        super().__init__("{}: {}".format(code, message))
        self.code = code
        self.message = message


class PublishError(CollectorError):
    """A GrowthForecast call failed."""

    def __init__(self, message, status=None):
        if status is not None:
            super().__init__("HTTP {}: {}".format(status, message))
        else:
            super().__init__(message)
        self.message = message
        self.status = status


class ConfigurationError(CollectorError):
    pass
